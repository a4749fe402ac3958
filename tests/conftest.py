"""Shared test fixtures."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date, datetime

import pytest

from pantry_chef.config import Settings
from pantry_chef.containers import AppContainer
from pantry_chef.domain.errors import ChatTransportError
from pantry_chef.domain.pantry import (
    HistoryEntry,
    IngredientSnapshot,
    MealRecord,
    PantryItem,
)
from pantry_chef.services.cache import InMemoryRecommendationCache
from pantry_chef.services.credentials import CredentialProvider, InMemoryCredentialStore
from pantry_chef.services.pantry import (
    MealHistoryRepository,
    PantryRepository,
    PantryService,
)
from pantry_chef.services.recommendations import (
    ChatCompletionClient,
    RecommendationService,
)
from pantry_chef.services.retry import RetryPolicy

TODAY = date(2024, 5, 10)


def recipe_payload(name: str = "番茄炒蛋", recipe_type: str = "快手菜") -> dict[str, object]:
    """Return a valid recipe dict in the wire format the prompt asks for."""
    return {
        "name": name,
        "type": recipe_type,
        "cooking_time": "15分钟",
        "servings": "2人份",
        "calories": 320,
        "nutrition": {"protein": 25, "carb": 45, "fat": 30},
        "ingredients": [
            {"name": "鸡蛋", "amount": 2, "unit": "个"},
            {"name": "番茄", "amount": 1, "unit": "个"},
        ],
        "steps": ["打散鸡蛋", "切番茄", "热油炒蛋", "加入番茄翻炒"],
        "expiration_priority": True,
        "tips": "番茄去皮口感更好",
    }


def recipes_json(*recipes: dict[str, object]) -> str:
    items = list(recipes) or [recipe_payload()]
    return json.dumps({"recipes": items}, ensure_ascii=False)


def completion_body(content: str) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@dataclass
class FakeChatClient(ChatCompletionClient):
    """Chat client replaying scripted outcomes, one per call."""

    outcomes: list[object] = field(default_factory=list)
    default_content: str = field(default_factory=recipes_json)
    calls: list[dict[str, object]] = field(default_factory=list)
    gate: asyncio.Event | None = None
    closed: bool = False

    async def complete(
        self, *, api_key: str, payload: dict[str, object], timeout: float
    ) -> dict[str, object]:
        self.calls.append({"api_key": api_key, "payload": payload, "timeout": timeout})
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else self.default_content
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, dict):
            return outcome
        return completion_body(str(outcome))

    async def close(self) -> None:
        self.closed = True


@dataclass
class SleepRecorder:
    """Sleep stand-in that records requested delays without waiting."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def transport_error(status_code: int | None = 503) -> ChatTransportError:
    return ChatTransportError("upstream unavailable", status_code=status_code)


@dataclass
class InMemoryPantryRepository(PantryRepository):
    """In-memory pantry repository for tests."""

    items: list[PantryItem] = field(default_factory=list)

    def list_items(self) -> list[PantryItem]:
        return sorted(
            self.items, key=lambda item: (item.expiry_date or date.max, item.name)
        )


@dataclass
class InMemoryMealHistoryRepository(MealHistoryRepository):
    """In-memory meal history repository for tests."""

    records: list[MealRecord] = field(default_factory=list)

    def list_recent(self, limit: int) -> list[MealRecord]:
        ordered = sorted(self.records, key=lambda record: record.eaten_at, reverse=True)
        return ordered[:limit]


def make_service(
    chat_client: FakeChatClient | None = None,
    *,
    api_key: str | None = "test-key",
    sleep: SleepRecorder | None = None,
    cache: InMemoryRecommendationCache | None = None,
) -> RecommendationService:
    return RecommendationService(
        chat_client=chat_client or FakeChatClient(),
        credentials=CredentialProvider(store=InMemoryCredentialStore(api_key)),
        cache=cache or InMemoryRecommendationCache(),
        model="test-model",
        retry_policy=RetryPolicy(sleep=sleep or SleepRecorder()),
        today=lambda: TODAY,
    )


@pytest.fixture
def ingredients() -> list[IngredientSnapshot]:
    return [
        IngredientSnapshot(
            id="rib-1",
            name="排骨",
            category="肉类",
            quantity=500,
            unit="克",
            expiry_date=date(2024, 5, 12),
        ),
        IngredientSnapshot(
            id="carrot-1",
            name="胡萝卜",
            category="蔬菜",
            quantity=3,
            unit="个",
            expiry_date=date(2024, 5, 20),
        ),
        IngredientSnapshot(
            id="rice-1",
            name="大米",
            category="主食",
            quantity=2.5,
            unit="千克",
        ),
    ]


@pytest.fixture
def history() -> list[HistoryEntry]:
    return [HistoryEntry(date="5/9", meal_description="红烧排骨配米饭")]


@pytest.fixture
def settings() -> Settings:
    return Settings(admin_token="admin-token", _env_file=None)


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def pantry_repository() -> InMemoryPantryRepository:
    return InMemoryPantryRepository(
        items=[
            PantryItem(
                id="item-2",
                name="鸡胸肉",
                category="肉类",
                quantity=300,
                unit="克",
                expiry_date=date(2024, 5, 13),
            ),
            PantryItem(
                id="item-1",
                name="猪里脊",
                category="肉类",
                quantity=500,
                unit="克",
                expiry_date=date(2024, 5, 12),
            ),
        ]
    )


@pytest.fixture
def container(
    settings: Settings,
    chat_client: FakeChatClient,
    pantry_repository: InMemoryPantryRepository,
) -> AppContainer:
    credential_provider = CredentialProvider(store=InMemoryCredentialStore("test-key"))
    cache = InMemoryRecommendationCache()
    recommendation_service = RecommendationService(
        chat_client=chat_client,
        credentials=credential_provider,
        cache=cache,
        model=settings.llm_model,
        retry_policy=RetryPolicy(sleep=SleepRecorder()),
        today=lambda: TODAY,
    )
    pantry_service = PantryService(
        pantry_repository=pantry_repository,
        history_repository=InMemoryMealHistoryRepository(
            records=[MealRecord(eaten_at=datetime(2024, 5, 9, 19, 0), meal="清蒸鱼")]
        ),
        recommendation_service=recommendation_service,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        credential_provider=credential_provider,
        cache=cache,
        recommendation_service=recommendation_service,
        pantry_service=pantry_service,
        close_resources=close_resources,
    )
