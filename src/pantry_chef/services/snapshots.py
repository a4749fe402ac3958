"""Build request snapshots from pantry inventory and meal history."""

import hashlib
from collections.abc import Iterable
from datetime import date

from pantry_chef.domain.pantry import (
    HistoryEntry,
    IngredientSnapshot,
    MealRecord,
    PantryItem,
)


def snapshot_ingredients(items: Iterable[PantryItem]) -> list[IngredientSnapshot]:
    """Copy inventory rows into immutable snapshots, keeping their order."""
    return [
        IngredientSnapshot(
            id=item.id,
            name=item.name,
            category=item.category,
            quantity=item.quantity,
            unit=item.unit,
            expiry_date=item.expiry_date,
        )
        for item in items
    ]


def build_snapshot(  # noqa: PLR0913
    *,
    name: str,
    category: str,
    quantity: float,
    unit: str,
    expiry_date: date | None = None,
    snapshot_id: str | None = None,
) -> IngredientSnapshot:
    """Create a snapshot, deriving a content fingerprint when no id is given."""
    return IngredientSnapshot(
        id=snapshot_id or ingredient_fingerprint(name, category, quantity, unit, expiry_date),
        name=name,
        category=category,
        quantity=quantity,
        unit=unit,
        expiry_date=expiry_date,
    )


def ingredient_fingerprint(
    name: str, category: str, quantity: float, unit: str, expiry_date: date | None
) -> str:
    """Return a stable identifier derived from the ingredient's fields."""
    expiry = expiry_date.isoformat() if expiry_date else ""
    raw = f"{name}|{category}|{quantity:g}|{unit}|{expiry}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]  # noqa: S324


def format_short_date(day: date) -> str:
    """Format a day as ``M/d``."""
    return f"{day.month}/{day.day}"


def history_from_records(records: Iterable[MealRecord]) -> list[HistoryEntry]:
    """Convert stored meal records, keeping the repository's order."""
    return [
        HistoryEntry(
            date=format_short_date(record.eaten_at.date()),
            meal_description=record.meal,
        )
        for record in records
        if record.meal.strip()
    ]
