"""
OpenAI-compatible API client.
Works with OpenAI, Azure OpenAI and other OpenAI-compatible chat endpoints.
"""

from typing import Any

import httpx
import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from ..exceptions import UpstreamError, UpstreamTimeoutError
from .base import BaseClient, Message, Role

DEFAULT_AZURE_API_VERSION = "2024-05-01-preview"


class OpenAICompatibleClient(BaseClient):
    def __init__(
        self,
        api_key: str,
        base_url: str,
        model_name: str,
        provider: str = "openai",
        api_version: str = DEFAULT_AZURE_API_VERSION,
        request_timeout: float = 120.0,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model_name = model_name
        self.provider = provider.lower()

        if self.provider == "azure":
            self._client = AsyncAzureOpenAI(
                api_key=api_key,
                azure_endpoint=base_url,
                api_version=api_version,
                http_client=httpx.AsyncClient(timeout=request_timeout),
            )
        else:
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                http_client=httpx.AsyncClient(timeout=request_timeout),
            )

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        return [msg.to_dict() for msg in messages]

    async def chat(
        self,
        messages: list[Message],
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ) -> Message:
        kwargs: dict[str, Any] = {
            "model": self.model_name,
            "messages": self._convert_messages(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as e:
            raise UpstreamTimeoutError("language model request timed out", model=self.model_name) from e
        except openai.RateLimitError as e:
            raise UpstreamError("language model rate limit exceeded", model=self.model_name) from e
        except openai.APIError as e:
            raise UpstreamError(f"language model request failed: {e}", model=self.model_name) from e

        if not getattr(response, "choices", None):
            raise UpstreamError("language model response has no choices", model=self.model_name)

        choice = response.choices[0]
        return Message(role=Role.ASSISTANT, content=choice.message.content)

    async def aclose(self) -> None:
        await self._client.close()


def create_client(
    api_key: str,
    base_url: str,
    model_name: str,
    provider: str = "openai",
    api_version: str = DEFAULT_AZURE_API_VERSION,
    request_timeout: float = 120.0,
) -> BaseClient:
    return OpenAICompatibleClient(
        api_key=api_key,
        base_url=base_url,
        model_name=model_name,
        provider=provider,
        api_version=api_version,
        request_timeout=request_timeout,
    )
