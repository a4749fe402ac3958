"""OpenAI-compatible chat completion client over raw HTTP."""

from dataclasses import dataclass

import httpx

from pantry_chef.domain.errors import ChatTransportError, InvalidResponseError
from pantry_chef.domain.recipes import ParseFailure
from pantry_chef.services.recommendations import ChatCompletionClient


@dataclass
class HttpxChatCompletionClient(ChatCompletionClient):
    """HTTPX-backed client for ``POST {base_url}/chat/completions``."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxChatCompletionClient":
        """Create a chat client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def complete(
        self, *, api_key: str, payload: dict[str, object], timeout: float
    ) -> dict[str, object]:
        """Send one chat completion request."""
        url = f"{self.base_url}/chat/completions"
        try:
            response = await self.http_client.post(
                url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {api_key}",
                },
                timeout=timeout,
            )
        except httpx.HTTPError as exc:
            raise ChatTransportError(f"Chat completion request failed: {exc!r}") from exc

        if response.status_code != 200:  # noqa: PLR2004
            raise ChatTransportError(
                f"Chat completion returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                "Chat completion body is not JSON",
                failure=ParseFailure(message=str(exc), context=response.text[:100]),
            ) from exc
        if not isinstance(body, dict):
            raise InvalidResponseError(
                "Chat completion body is not a JSON object",
                failure=ParseFailure(message="unexpected body type"),
            )
        return body

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
