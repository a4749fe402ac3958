"""API credential lookup with first-run fallback."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pantry_chef.domain.errors import MissingCredentialError

_logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Secure key-value slot holding the language model API key."""

    def get(self) -> str | None:
        """Return the stored credential, if any."""

    def set(self, value: str) -> None:
        """Replace the stored credential."""

    def delete(self) -> None:
        """Remove the stored credential."""


@dataclass
class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store."""

    value: str | None = None

    def get(self) -> str | None:
        return self.value

    def set(self, value: str) -> None:
        self.value = value

    def delete(self) -> None:
        self.value = None


@dataclass
class CredentialProvider:
    """Resolve the credential, seeding the store from a default on first run."""

    store: CredentialStore
    default_api_key: str | None = None

    def resolve(self) -> str:
        """Return a usable API key or raise MissingCredentialError."""
        stored = (self.store.get() or "").strip()
        if stored:
            return stored
        default = (self.default_api_key or "").strip()
        if default:
            _logger.info("Seeding credential store with the configured default key")
            self.store.set(default)
            return default
        raise MissingCredentialError("No language model API key is configured")

    def is_configured(self) -> bool:
        """Return whether a key is stored or a default is available."""
        return bool((self.store.get() or "").strip() or (self.default_api_key or "").strip())

    def update(self, api_key: str) -> None:
        """Store a new API key."""
        cleaned = api_key.strip()
        if not cleaned:
            raise ValueError("API key must not be empty")
        self.store.set(cleaned)
        _logger.info("Credential updated")

    def clear(self) -> None:
        """Delete the stored API key."""
        self.store.delete()
        _logger.info("Credential deleted")
