"""Shared fixtures: a scripted language-model stub and a recording agent."""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from careflow import stats
from careflow.clients import BaseClient, Message, Role
from careflow.orchestration import (
    Agent,
    AgentContext,
    AgentContribution,
    AgentExecutionResult,
    AgentWorkspace,
    ErrorCode,
    WorkflowStep,
)


class StubClient(BaseClient):
    """Language-model stub returning fixed or scripted text.

    ``responder`` receives (system, user) and returns the reply text; it
    takes precedence over ``text``. ``error`` is raised on every call.
    """

    def __init__(
        self,
        text: str = "stub response",
        responder: Optional[Callable[[str, str], str]] = None,
        delay: float = 0.0,
        error: Optional[BaseException] = None,
    ):
        self.text = text
        self.responder = responder
        self.delay = delay
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    async def chat(self, messages, max_tokens=1000, temperature=0.3) -> Message:
        system = next((m.content for m in messages if m.role == Role.SYSTEM), "")
        user = next((m.content for m in messages if m.role == Role.USER), "")
        self.requests.append({
            "system": system,
            "user": user,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        reply = self.responder(system, user) if self.responder else self.text
        return Message(role=Role.ASSISTANT, content=reply)


class RecordingAgent(Agent):
    """Agent that records what it saw and answers from a script.

    ``fail`` maps step name to an error message, ``delays`` maps step name to
    seconds to sleep, ``raises`` names steps whose execute raises instead of
    returning a result.
    """

    def __init__(
        self,
        agent_id: str = "RecordingAgent",
        outputs: Optional[Dict[str, Dict[str, Any]]] = None,
        fail: Optional[Dict[str, str]] = None,
        delays: Optional[Dict[str, float]] = None,
        raises: Optional[set] = None,
        confidence: float = 0.5,
        contribution_error: Optional[Exception] = None,
    ):
        self.agent_id = agent_id
        self.name = f"{agent_id} (test)"
        self.capability = "testing"
        self.outputs = outputs or {}
        self.fail = fail or {}
        self.delays = delays or {}
        self.raises = raises or set()
        self.confidence = confidence
        self.contribution_error = contribution_error
        self.calls: List[str] = []
        self.seen: Dict[str, Dict[str, Any]] = {}
        self.active = 0
        self.max_active = 0
        self.workspaces: List[AgentWorkspace] = []

    async def execute(self, step: WorkflowStep, context: AgentContext) -> AgentExecutionResult:
        self.calls.append(step.name)
        self.seen[step.name] = dict(context.intermediate_results)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if step.name in self.delays:
                await asyncio.sleep(self.delays[step.name])
            if step.name in self.raises:
                raise RuntimeError(f"{step.name} exploded")
            if step.name in self.fail:
                return AgentExecutionResult.failed(
                    step_name=step.name,
                    error=self.fail[step.name],
                    error_code=ErrorCode.HANDLER_ERROR,
                    agent_id=self.agent_id,
                )
            output = self.outputs.get(step.name, {"step": step.name, "by": self.agent_id})
            return AgentExecutionResult.succeeded(step.name, output, agent_id=self.agent_id)
        finally:
            self.active -= 1

    async def contribute_to_collaboration(self, goal: str, workspace: AgentWorkspace) -> AgentContribution:
        self.workspaces.append(workspace)
        if self.contribution_error is not None:
            raise self.contribution_error
        return AgentContribution(
            agent_id=self.agent_id,
            contribution_text=f"{self.agent_id} on {goal}",
            confidence_score=self.confidence,
        )


@pytest.fixture(autouse=True)
def reset_call_stats():
    stats.reset_stats()
    yield
    stats.reset_stats()


@pytest.fixture
def stub_client():
    return StubClient()


@pytest.fixture
def recording_agent():
    return RecordingAgent()
