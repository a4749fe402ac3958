"""Recommendations driven by the stored pantry and meal history."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pantry_chef.domain.pantry import (
    HistoryEntry,
    IngredientSnapshot,
    MealRecord,
    PantryItem,
)
from pantry_chef.domain.recipes import Recipe
from pantry_chef.services.recommendations import RecommendationService
from pantry_chef.services.snapshots import history_from_records, snapshot_ingredients

_logger = logging.getLogger(__name__)


class PantryRepository(Protocol):
    """Persistence interface for pantry inventory."""

    def list_items(self) -> list[PantryItem]:
        """Return inventory ordered by expiry date, then name."""


class MealHistoryRepository(Protocol):
    """Persistence interface for eaten meals."""

    def list_recent(self, limit: int) -> list[MealRecord]:
        """Return the most recent meals, newest first."""


@dataclass
class PantryService:
    """Build recommendation requests from the pantry store."""

    pantry_repository: PantryRepository
    history_repository: MealHistoryRepository
    recommendation_service: RecommendationService
    history_limit: int = 6

    def load_request(self) -> tuple[list[IngredientSnapshot], list[HistoryEntry]]:
        """Snapshot the current inventory and recent meal history."""
        ingredients = snapshot_ingredients(self.pantry_repository.list_items())
        history = history_from_records(
            self.history_repository.list_recent(self.history_limit)
        )
        return ingredients, history

    async def recommend(self, *, deadline: float | None = None) -> list[Recipe]:
        """Recommend recipes for whatever is in the pantry right now."""
        ingredients, history = self.load_request()
        _logger.info(
            "Pantry recommendation: ingredients=%s history=%s",
            len(ingredients),
            len(history),
        )
        return await self.recommendation_service.recommend(
            ingredients, history, deadline=deadline
        )
