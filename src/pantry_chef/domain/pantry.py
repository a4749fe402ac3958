"""Domain models for pantry inventory and meal history."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class PantryItem:
    """Inventory row as stored in the pantry store."""

    id: str
    name: str
    category: str
    quantity: float
    unit: str
    purchase_date: date | None = None
    expiry_date: date | None = None


@dataclass(frozen=True)
class MealRecord:
    """Meal history row as stored in the pantry store."""

    eaten_at: datetime
    meal: str


@dataclass(frozen=True)
class IngredientSnapshot:
    """Point-in-time copy of one inventory item used for a recommendation."""

    id: str
    name: str
    category: str
    quantity: float
    unit: str
    expiry_date: date | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """Recently eaten meal rendered into the prompt."""

    date: str
    meal_description: str
