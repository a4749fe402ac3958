"""Request and response models for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

from pantry_chef.domain.pantry import HistoryEntry, IngredientSnapshot
from pantry_chef.services.snapshots import build_snapshot


class IngredientPayload(BaseModel):
    """Inventory item supplied by the client."""

    id: str | None = None
    name: str = Field(min_length=1)
    category: str = ""
    quantity: float = Field(default=0, ge=0)
    unit: str = ""
    expiry_date: date | None = None

    def to_snapshot(self) -> IngredientSnapshot:
        return build_snapshot(
            name=self.name,
            category=self.category,
            quantity=self.quantity,
            unit=self.unit,
            expiry_date=self.expiry_date,
            snapshot_id=self.id,
        )


class HistoryPayload(BaseModel):
    """Recently eaten meal supplied by the client."""

    date: str
    meal: str = Field(min_length=1)

    def to_entry(self) -> HistoryEntry:
        return HistoryEntry(date=self.date, meal_description=self.meal)


class RecommendationRequest(BaseModel):
    """Body of ``POST /recommendations``."""

    ingredients: list[IngredientPayload]
    history: list[HistoryPayload] = Field(default_factory=list)
    deadline_seconds: float | None = Field(default=None, gt=0)


class PantryRecommendationRequest(BaseModel):
    """Body of ``POST /pantry/recommendations``."""

    deadline_seconds: float | None = Field(default=None, gt=0)


class CredentialUpdate(BaseModel):
    """Body of ``PUT /admin/credential``."""

    api_key: str = Field(min_length=1)
