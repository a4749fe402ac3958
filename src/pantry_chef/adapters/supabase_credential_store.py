"""Supabase-backed credential store."""

from dataclasses import dataclass

from supabase import Client

from pantry_chef.services.credentials import CredentialStore


@dataclass
class SupabaseCredentialStore(CredentialStore):
    """Keeps the API key in the ``app_secrets`` table under a fixed identifier."""

    client: Client
    identifier: str

    def get(self) -> str | None:
        """Return the stored credential, if present."""
        response = (
            self.client.table("app_secrets")
            .select("value")
            .eq("identifier", self.identifier)
            .limit(1)
            .execute()
        )
        if response.data:
            value = response.data[0].get("value")
            return value if isinstance(value, str) else None
        return None

    def set(self, value: str) -> None:
        """Insert or replace the credential row."""
        self.client.table("app_secrets").upsert(
            {"identifier": self.identifier, "value": value},
            on_conflict="identifier",
        ).execute()

    def delete(self) -> None:
        """Delete the credential row."""
        self.client.table("app_secrets").delete().eq(
            "identifier", self.identifier
        ).execute()
