"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from pantry_chef.adapters.httpx_chat_client import HttpxChatCompletionClient
from pantry_chef.adapters.openai_chat_client import OpenAIChatCompletionClient
from pantry_chef.adapters.supabase_credential_store import SupabaseCredentialStore
from pantry_chef.adapters.supabase_pantry_repository import (
    SupabaseMealHistoryRepository,
    SupabasePantryRepository,
)
from pantry_chef.config import Settings
from pantry_chef.services.cache import (
    InMemoryRecommendationCache,
    RecommendationCache,
)
from pantry_chef.services.credentials import (
    CredentialProvider,
    CredentialStore,
    InMemoryCredentialStore,
)
from pantry_chef.services.pantry import PantryService
from pantry_chef.services.recommendations import (
    ChatCompletionClient,
    RecommendationService,
)
from pantry_chef.services.retry import RetryPolicy


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    credential_provider: CredentialProvider
    cache: RecommendationCache
    recommendation_service: RecommendationService
    pantry_service: PantryService | None
    close_resources: Callable[[], Awaitable[None]]


def build_chat_client(settings: Settings) -> ChatCompletionClient:
    """Create the chat transport selected in settings."""
    if settings.llm_transport == "openai":
        return OpenAIChatCompletionClient.create(settings.llm_base_url)
    return HttpxChatCompletionClient.create(settings.llm_base_url)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = None
    credential_store: CredentialStore = InMemoryCredentialStore()
    if resolved_settings.supabase_enabled:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        credential_store = SupabaseCredentialStore(
            supabase_client, identifier=resolved_settings.credential_identifier
        )

    credential_provider = CredentialProvider(
        store=credential_store,
        default_api_key=resolved_settings.llm_default_api_key,
    )
    cache = InMemoryRecommendationCache(
        max_entries=resolved_settings.cache_max_entries,
        ttl_seconds=resolved_settings.cache_ttl_seconds,
    )
    chat_client = build_chat_client(resolved_settings)
    recommendation_service = RecommendationService(
        chat_client=chat_client,
        credentials=credential_provider,
        cache=cache,
        model=resolved_settings.llm_model,
        temperature=resolved_settings.llm_temperature,
        timeout_seconds=resolved_settings.llm_timeout_seconds,
        retry_policy=RetryPolicy(
            max_attempts=resolved_settings.llm_max_attempts,
            backoff_base_seconds=resolved_settings.llm_backoff_base_seconds,
        ),
    )

    pantry_service = None
    if supabase_client is not None:
        pantry_service = PantryService(
            pantry_repository=SupabasePantryRepository(supabase_client),
            history_repository=SupabaseMealHistoryRepository(supabase_client),
            recommendation_service=recommendation_service,
            history_limit=resolved_settings.history_limit,
        )

    async def close_resources() -> None:
        await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        credential_provider=credential_provider,
        cache=cache,
        recommendation_service=recommendation_service,
        pantry_service=pantry_service,
        close_resources=close_resources,
    )
