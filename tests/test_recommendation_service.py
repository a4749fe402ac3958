"""Tests for the recommendation service."""

import asyncio

import pytest

from pantry_chef.domain.errors import (
    InvalidResponseError,
    MissingCredentialError,
    NetworkError,
    NoIngredientsError,
    RecommendationCancelled,
)
from pantry_chef.services.cache import InMemoryRecommendationCache, request_cache_key
from pantry_chef.services.retry import RetryPolicy
from tests.conftest import (
    FakeChatClient,
    SleepRecorder,
    make_service,
    recipes_json,
    transport_error,
)


def test_second_identical_request_is_served_from_cache(ingredients, history) -> None:
    client = FakeChatClient()
    service = make_service(client)

    first = asyncio.run(service.recommend(ingredients, history))
    second = asyncio.run(service.recommend(ingredients, history))

    assert len(client.calls) == 1
    assert first == second


def test_cache_key_is_order_sensitive(ingredients, history) -> None:
    client = FakeChatClient()
    service = make_service(client)

    asyncio.run(service.recommend(ingredients, history))
    asyncio.run(service.recommend(list(reversed(ingredients)), history))

    assert len(client.calls) == 2


def test_request_payload_shape(ingredients, history) -> None:
    client = FakeChatClient()
    service = make_service(client)

    asyncio.run(service.recommend(ingredients, history))

    call = client.calls[0]
    payload = call["payload"]
    assert call["api_key"] == "test-key"
    assert call["timeout"] == 30.0
    assert payload["model"] == "test-model"
    assert payload["temperature"] == 0.6
    assert len(payload["messages"]) == 1
    assert payload["messages"][0]["role"] == "user"
    assert "排骨" in payload["messages"][0]["content"]


def test_retries_with_exponential_backoff_then_succeeds(ingredients, history) -> None:
    client = FakeChatClient(outcomes=[transport_error(), transport_error(None)])
    sleep = SleepRecorder()
    service = make_service(client, sleep=sleep)

    recipes = asyncio.run(service.recommend(ingredients, history))

    assert recipes
    assert len(client.calls) == 3
    assert sleep.delays == [2.0, 4.0]


def test_always_failing_transport_stops_after_max_attempts(
    ingredients, history
) -> None:
    client = FakeChatClient(outcomes=[transport_error() for _ in range(10)])
    sleep = SleepRecorder()
    service = make_service(client, sleep=sleep)

    with pytest.raises(NetworkError) as exc_info:
        asyncio.run(service.recommend(ingredients, history))

    assert len(client.calls) == 3
    assert exc_info.value.attempts == 3
    assert exc_info.value.last_error is not None
    assert sleep.delays == [2.0, 4.0]


def test_missing_credential_fails_fast(ingredients, history) -> None:
    client = FakeChatClient()
    service = make_service(client, api_key=None)

    with pytest.raises(MissingCredentialError):
        asyncio.run(service.recommend(ingredients, history))

    assert client.calls == []


def test_cache_hit_needs_no_credential(ingredients, history) -> None:
    cache = InMemoryRecommendationCache()
    cache.set(request_cache_key(ingredients, history), recipes_json())
    client = FakeChatClient()
    service = make_service(client, api_key=None, cache=cache)

    recipes = asyncio.run(service.recommend(ingredients, history))

    assert recipes
    assert client.calls == []


def test_empty_ingredients_rejected(history) -> None:
    with pytest.raises(NoIngredientsError):
        asyncio.run(make_service().recommend([], history))


def test_envelope_without_content_is_not_retried(ingredients, history) -> None:
    client = FakeChatClient(outcomes=[{"choices": []}])
    service = make_service(client)

    with pytest.raises(InvalidResponseError):
        asyncio.run(service.recommend(ingredients, history))

    assert len(client.calls) == 1


def test_unparseable_content_is_not_cached(ingredients, history) -> None:
    client = FakeChatClient(outcomes=["not json at all", recipes_json()])
    service = make_service(client)

    with pytest.raises(InvalidResponseError):
        asyncio.run(service.recommend(ingredients, history))
    recipes = asyncio.run(service.recommend(ingredients, history))

    assert recipes
    assert len(client.calls) == 2
    assert service.cache.size() == 1


def test_deadline_cancels_in_flight_call(ingredients, history) -> None:
    client = FakeChatClient(gate=asyncio.Event())
    service = make_service(client)

    with pytest.raises(RecommendationCancelled):
        asyncio.run(service.recommend(ingredients, history, deadline=0.05))

    assert len(client.calls) == 1
    assert service._in_flight == {}


def test_deadline_interrupts_backoff(ingredients, history) -> None:
    async def slow_sleep(seconds: float) -> None:
        await asyncio.sleep(seconds)

    client = FakeChatClient(outcomes=[transport_error() for _ in range(3)])
    service = make_service(client)
    service.retry_policy = RetryPolicy(sleep=slow_sleep)

    with pytest.raises(RecommendationCancelled):
        asyncio.run(service.recommend(ingredients, history, deadline=0.1))

    assert len(client.calls) == 1


def test_concurrent_identical_requests_share_one_call(ingredients, history) -> None:
    async def scenario() -> tuple[list, list, int]:
        gate = asyncio.Event()
        client = FakeChatClient(gate=gate)
        service = make_service(client)
        first = asyncio.create_task(service.recommend(ingredients, history))
        second = asyncio.create_task(service.recommend(ingredients, history))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(first, second)
        return results[0], results[1], len(client.calls)

    first, second, calls = asyncio.run(scenario())

    assert calls == 1
    assert first == second


def test_cancelling_one_waiter_keeps_shared_call_alive(ingredients, history) -> None:
    async def scenario() -> tuple[bool, list, int]:
        gate = asyncio.Event()
        client = FakeChatClient(gate=gate)
        service = make_service(client)
        first = asyncio.create_task(service.recommend(ingredients, history))
        second = asyncio.create_task(service.recommend(ingredients, history))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        first.cancel()
        await asyncio.sleep(0)
        gate.set()
        result = await second
        return first.cancelled(), result, len(client.calls)

    cancelled, result, calls = asyncio.run(scenario())

    assert cancelled
    assert result
    assert calls == 1


def test_request_after_abandoned_call_starts_fresh(ingredients, history) -> None:
    async def scenario() -> tuple[bool, list, int]:
        gate = asyncio.Event()
        client = FakeChatClient(gate=gate)
        service = make_service(client)
        first = asyncio.create_task(service.recommend(ingredients, history))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        first.cancel()
        await asyncio.sleep(0)
        second = asyncio.create_task(service.recommend(ingredients, history))
        await asyncio.sleep(0)
        gate.set()
        result = await second
        return first.cancelled(), result, len(client.calls)

    cancelled, result, calls = asyncio.run(scenario())

    assert cancelled
    assert result
    assert calls == 2
