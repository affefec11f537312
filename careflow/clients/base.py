"""
Base client interface and data structures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..exceptions import UpstreamError


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: Role
    content: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role.value}
        if self.content:
            result["content"] = self.content
        return result


@dataclass(frozen=True)
class SamplingParams:
    temperature: float = 0.3
    max_output_tokens: int = 1000

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"temperature must be within [0, 1], got {self.temperature}")
        if self.max_output_tokens <= 0:
            raise ValueError(f"max_output_tokens must be positive, got {self.max_output_tokens}")


@dataclass(frozen=True)
class CompletionRequest:
    system_instruction: str
    user_instruction: str
    sampling: SamplingParams = SamplingParams()

    @property
    def temperature(self) -> float:
        return self.sampling.temperature

    @property
    def max_output_tokens(self) -> int:
        return self.sampling.max_output_tokens

    def to_messages(self) -> list[Message]:
        return [
            Message(role=Role.SYSTEM, content=self.system_instruction),
            Message(role=Role.USER, content=self.user_instruction),
        ]


@dataclass(frozen=True)
class CompletionResponse:
    text: str


class BaseClient(ABC):
    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ) -> Message:
        pass

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Run one system/user exchange and return the generated text.

        Raises UpstreamError when the provider answers without usable text.
        """
        response = await self.chat(
            messages=request.to_messages(),
            max_tokens=request.max_output_tokens,
            temperature=request.temperature,
        )
        if response is None or not isinstance(response.content, str) or not response.content.strip():
            raise UpstreamError("language model returned an empty or malformed response")
        return CompletionResponse(text=response.content.strip())
