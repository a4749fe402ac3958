"""Recipe recommendation client: cache, single-flight, retry, parse."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from functools import partial
from typing import Protocol

from pantry_chef.domain.errors import (
    ChatTransportError,
    InvalidResponseError,
    NetworkError,
    NoIngredientsError,
    RecommendationCancelled,
)
from pantry_chef.domain.pantry import HistoryEntry, IngredientSnapshot
from pantry_chef.domain.recipes import ParseFailure, Recipe
from pantry_chef.services.cache import RecommendationCache, request_cache_key
from pantry_chef.services.credentials import CredentialProvider
from pantry_chef.services.parsing import RecipeResponseParser
from pantry_chef.services.prompts import compose_prompt
from pantry_chef.services.retry import RetryPolicy

_logger = logging.getLogger(__name__)


class ChatCompletionClient(Protocol):
    """Transport for OpenAI-compatible chat completion calls."""

    async def complete(
        self, *, api_key: str, payload: dict[str, object], timeout: float
    ) -> dict[str, object]:
        """Send one request and return the decoded response body.

        Raises ChatTransportError for transport failures and non-200 statuses.
        """

    async def close(self) -> None:
        """Release the underlying HTTP session."""


@dataclass
class _Flight:
    task: "asyncio.Task[list[Recipe]]"
    waiters: int = 0


@dataclass
class RecommendationService:
    """Turn a pantry snapshot into recipe recommendations."""

    chat_client: ChatCompletionClient
    credentials: CredentialProvider
    cache: RecommendationCache
    model: str
    temperature: float = 0.6
    timeout_seconds: float = 30.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    parser: RecipeResponseParser = field(default_factory=RecipeResponseParser)
    today: Callable[[], date] = date.today
    _in_flight: dict[str, _Flight] = field(default_factory=dict, init=False, repr=False)

    async def recommend(
        self,
        ingredients: Sequence[IngredientSnapshot],
        history: Sequence[HistoryEntry] = (),
        *,
        deadline: float | None = None,
    ) -> list[Recipe]:
        """Return recipes for the inventory and recent meals.

        ``deadline`` bounds the whole call in seconds; when it expires any
        in-flight attempt or backoff wait is abandoned and
        RecommendationCancelled is raised.
        """
        if not ingredients:
            raise NoIngredientsError("At least one ingredient is required")
        if deadline is None:
            return await self._recommend(ingredients, history)

        timeout = asyncio.timeout(deadline)
        try:
            async with timeout:
                return await self._recommend(ingredients, history)
        except TimeoutError as exc:
            if not timeout.expired():
                raise
            _logger.info("Recommendation deadline of %ss expired", deadline)
            raise RecommendationCancelled(
                f"Recommendation did not finish within {deadline}s"
            ) from exc

    async def _recommend(
        self,
        ingredients: Sequence[IngredientSnapshot],
        history: Sequence[HistoryEntry],
    ) -> list[Recipe]:
        key = request_cache_key(ingredients, history)
        cached = self.cache.get(key)
        if cached is not None:
            _logger.info("Recommendation cache hit: ingredients=%s", len(ingredients))
            return self.parser.parse(cached).recipes

        api_key = self.credentials.resolve()
        prompt = compose_prompt(ingredients, history, today=self.today())
        return await self._join_flight(key, api_key, prompt)

    async def _join_flight(self, key: str, api_key: str, prompt: str) -> list[Recipe]:
        """Share one fetch between concurrent callers with the same key."""
        flight = self._in_flight.get(key)
        # A flight abandoned by its last waiter is never joined.
        if flight is None or flight.task.cancelling() or flight.task.cancelled():
            task = asyncio.create_task(self._fetch_and_parse(key, api_key, prompt))
            flight = _Flight(task=task)
            self._in_flight[key] = flight
            task.add_done_callback(partial(self._forget_flight, key, flight))
        else:
            _logger.info("Joining in-flight recommendation request")

        flight.waiters += 1
        try:
            return list(await asyncio.shield(flight.task))
        except asyncio.CancelledError:
            if flight.waiters == 1:
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    def _forget_flight(self, key: str, flight: _Flight, _task: asyncio.Task) -> None:
        if self._in_flight.get(key) is flight:
            del self._in_flight[key]

    async def _fetch_and_parse(self, key: str, api_key: str, prompt: str) -> list[Recipe]:
        content = await self._fetch_with_retry(api_key, prompt)
        parsed = self.parser.parse(content)
        if parsed.rejected:
            _logger.warning(
                "Recommendation kept %s recipe(s), dropped %s",
                len(parsed.recipes),
                len(parsed.rejected),
            )
        self.cache.set(key, content)
        return parsed.recipes

    async def _fetch_with_retry(self, api_key: str, prompt: str) -> str:
        payload = self._build_payload(prompt)
        policy = self.retry_policy
        last_error: ChatTransportError | None = None
        for attempt in range(1, policy.max_attempts + 1):
            try:
                body = await self.chat_client.complete(
                    api_key=api_key, payload=payload, timeout=self.timeout_seconds
                )
            except ChatTransportError as exc:
                last_error = exc
                _logger.warning(
                    "Chat completion failed (attempt %s/%s, status=%s): %s",
                    attempt,
                    policy.max_attempts,
                    exc.status_code if exc.status_code is not None else "n/a",
                    exc,
                )
                if attempt < policy.max_attempts:
                    await policy.sleep(policy.delay_for(attempt))
                continue
            return _extract_content(body)
        raise NetworkError(last_error, attempts=policy.max_attempts) from last_error

    def _build_payload(self, prompt: str) -> dict[str, object]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }


def _extract_content(body: dict[str, object]) -> str:
    """Return ``choices[0].message.content`` from a completion body."""
    choices = body.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str) and content.strip():
                return content
    raise InvalidResponseError(
        "Chat completion response has no message content",
        failure=ParseFailure(message="missing choices[0].message.content"),
    )
