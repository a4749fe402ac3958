"""Chat completion client backed by the OpenAI SDK."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from pantry_chef.domain.errors import ChatTransportError
from pantry_chef.services.recommendations import ChatCompletionClient


@dataclass
class OpenAIChatCompletionClient(ChatCompletionClient):
    """Chat client using ``AsyncOpenAI`` against any compatible base URL."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, base_url: str) -> "OpenAIChatCompletionClient":
        """Create a client; the SDK's own retries are disabled."""
        # The real key is supplied per request from the credential store.
        return cls(
            client=AsyncOpenAI(api_key="unset", base_url=base_url, max_retries=0)
        )

    async def complete(
        self, *, api_key: str, payload: dict[str, object], timeout: float
    ) -> dict[str, object]:
        """Send one chat completion request through the SDK."""
        client = self.client.with_options(api_key=api_key, timeout=timeout)
        try:
            completion = await client.chat.completions.create(**payload)
        except openai.APIStatusError as exc:
            raise ChatTransportError(
                f"Chat completion returned HTTP {exc.status_code}",
                status_code=exc.status_code,
            ) from exc
        except openai.APIConnectionError as exc:
            raise ChatTransportError(f"Chat completion request failed: {exc}") from exc
        return completion.model_dump()

    async def close(self) -> None:
        """Close the SDK's HTTP session."""
        await self.client.close()
