"""
Language-model collaborator clients.
All providers use the OpenAI-compatible chat API format.
"""

from .base import (
    BaseClient,
    CompletionRequest,
    CompletionResponse,
    Message,
    Role,
    SamplingParams,
)
from .openai_compatible import OpenAICompatibleClient, create_client

__all__ = [
    "BaseClient",
    "CompletionRequest",
    "CompletionResponse",
    "Message",
    "Role",
    "SamplingParams",
    "OpenAICompatibleClient",
    "create_client",
]
