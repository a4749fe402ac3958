"""Supabase repositories for pantry inventory and meal history."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from pantry_chef.domain.pantry import MealRecord, PantryItem
from pantry_chef.services.pantry import MealHistoryRepository, PantryRepository


@dataclass
class SupabasePantryRepository(PantryRepository):
    """Supabase implementation for pantry items."""

    client: Client

    def list_items(self) -> list[PantryItem]:
        """Return inventory ordered by expiry date, then name."""
        response = (
            self.client.table("pantry_items")
            .select("id, name, category, quantity, unit, purchase_date, expiry_date")
            .order("expiry_date")
            .order("name")
            .execute()
        )
        return [_row_to_item(row) for row in response.data or []]


@dataclass
class SupabaseMealHistoryRepository(MealHistoryRepository):
    """Supabase implementation for meal history."""

    client: Client

    def list_recent(self, limit: int) -> list[MealRecord]:
        """Return the most recent meals, newest first."""
        response = (
            self.client.table("meal_history")
            .select("eaten_at, meal")
            .order("eaten_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [
            MealRecord(
                eaten_at=datetime.fromisoformat(row["eaten_at"]),
                meal=row.get("meal") or "",
            )
            for row in response.data or []
        ]


def _row_to_item(row: dict[str, object]) -> PantryItem:
    return PantryItem(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        category=str(row.get("category") or ""),
        quantity=float(row.get("quantity") or 0),
        unit=str(row.get("unit") or ""),
        purchase_date=_parse_date(row.get("purchase_date")),
        expiry_date=_parse_date(row.get("expiry_date")),
    )


def _parse_date(value: object) -> date | None:
    if not isinstance(value, str) or not value:
        return None
    return date.fromisoformat(value[:10])
