"""
Base class for healthcare agents.

An agent owns a closed mapping from step name to handler, built once in the
constructor. Steps it does not know are answered by a clearly marked generic
handler that asks the language model for a best-effort result, so the
orchestrator always gets a well-formed AgentExecutionResult back.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

from rich.console import Console

from .. import stats
from ..clients import BaseClient, CompletionRequest, SamplingParams
from ..exceptions import UpstreamError, UpstreamTimeoutError
from ..orchestration.models import (
    AgentContext,
    AgentContribution,
    AgentExecutionResult,
    AgentWorkspace,
    ErrorCode,
    WorkflowStep,
)
from ..orchestration.registry import Agent

console = Console()

HandlerFunc = Callable[[WorkflowStep, AgentContext], Awaitable[dict[str, Any]]]

COLLABORATION_SAMPLING = SamplingParams(temperature=0.4, max_output_tokens=400)


@dataclass(frozen=True)
class StepHandler:
    name: str
    func: HandlerFunc
    sampling: Optional[SamplingParams] = None


class HealthcareAgent(Agent):
    agent_id = "HealthcareAgent"
    name = "Healthcare Assistant"
    capability = ""
    role_description = "healthcare assistant"
    base_confidence = 0.8
    keywords: tuple[str, ...] = ()
    default_sampling = SamplingParams(temperature=0.3, max_output_tokens=1000)

    def __init__(self, client: BaseClient, verbose: bool = True):
        self.client = client
        self.verbose = verbose
        self._handlers: dict[str, StepHandler] = {}
        self._register_handlers()

    def _register_handlers(self) -> None:
        pass

    def register(
        self,
        step_name: str,
        func: HandlerFunc,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> None:
        sampling = None
        if temperature is not None or max_output_tokens is not None:
            sampling = SamplingParams(
                temperature=self.default_sampling.temperature if temperature is None else temperature,
                max_output_tokens=max_output_tokens or self.default_sampling.max_output_tokens,
            )
        self._handlers[step_name] = StepHandler(name=step_name, func=func, sampling=sampling)

    def handled_steps(self) -> list[str]:
        return list(self._handlers.keys())

    def handles(self, step_name: str) -> bool:
        return step_name in self._handlers

    def sampling_for(self, step: WorkflowStep) -> SamplingParams:
        if step.sampling is not None:
            return step.sampling
        handler = self._handlers.get(step.name)
        if handler is not None and handler.sampling is not None:
            return handler.sampling
        return self.default_sampling

    async def execute(self, step: WorkflowStep, context: AgentContext) -> AgentExecutionResult:
        if self.verbose:
            console.print(f"[dim]→ {self.agent_id} executing {step.name}[/dim]")

        start = time.perf_counter()
        handler = self._handlers.get(step.name)

        try:
            if handler is None:
                output = await self._handle_unknown_step(step, context)
            else:
                output = await handler.func(step, context)
        except UpstreamTimeoutError:
            console.print(f"[red]{self.agent_id} step {step.name}: language model timed out[/red]")
            return self._failed(step, "timeout", ErrorCode.TIMEOUT, start)
        except UpstreamError as e:
            console.print(f"[red]{self.agent_id} step {step.name}: {e}[/red]")
            return self._failed(step, str(e), ErrorCode.UPSTREAM_ERROR, start)
        except Exception as e:
            console.print(f"[red]Error in {self.agent_id} step {step.name}: {e}[/red]")
            return self._failed(step, str(e) or type(e).__name__, ErrorCode.HANDLER_ERROR, start)

        return AgentExecutionResult.succeeded(
            step_name=step.name,
            output=output,
            duration=timedelta(seconds=time.perf_counter() - start),
            agent_id=self.agent_id,
        )

    def _failed(self, step: WorkflowStep, error: str, code: ErrorCode, start: float) -> AgentExecutionResult:
        return AgentExecutionResult.failed(
            step_name=step.name,
            error=error,
            error_code=code,
            duration=timedelta(seconds=time.perf_counter() - start),
            agent_id=self.agent_id,
        )

    async def _handle_unknown_step(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        console.print(
            f"[yellow]{self.agent_id}: no handler for step {step.name}, using generic fallback[/yellow]"
        )
        system_instruction = f"You are a {self.role_description}. Handle the following task: {step.name}"
        user_instruction = f"Context: {context.input_as_pairs()}"

        text = await self.ask(system_instruction, user_instruction, self.sampling_for(step), fallback=True)

        return {
            "stepName": step.name,
            "handled": True,
            "result": text,
        }

    async def ask(
        self,
        system_instruction: str,
        user_instruction: str,
        sampling: SamplingParams,
        fallback: bool = False,
    ) -> str:
        request = CompletionRequest(
            system_instruction=system_instruction,
            user_instruction=user_instruction,
            sampling=sampling,
        )
        try:
            response = await self.client.complete(request)
        except UpstreamError:
            stats.record_call(self.agent_id, failed=True, fallback=fallback)
            raise
        except (asyncio.TimeoutError, TimeoutError) as e:
            stats.record_call(self.agent_id, failed=True, fallback=fallback)
            raise UpstreamTimeoutError("language model request timed out", agent=self.agent_id) from e
        except Exception as e:
            stats.record_call(self.agent_id, failed=True, fallback=fallback)
            raise UpstreamError(f"language model call failed: {e}", agent=self.agent_id) from e

        stats.record_call(self.agent_id, fallback=fallback)
        return response.text

    def relevance_to(self, goal: str) -> float:
        goal_lower = goal.lower()
        hits = sum(1 for keyword in self.keywords if keyword in goal_lower)
        return 0.5 + 0.5 * min(hits, 2) / 2

    async def contribute_to_collaboration(self, goal: str, workspace: AgentWorkspace) -> AgentContribution:
        prior = "\n".join(
            f"- {c.agent_id} ({c.confidence_score:.2f}): {c.contribution_text[:200]}"
            for c in workspace.contributions
        ) or "none yet"

        system_instruction = (
            f"You are the {self.name}. Your capability: {self.capability}.\n"
            "In a few sentences, state how you would contribute to the goal below "
            "and what you would hand off to other agents."
        )
        user_instruction = f"Goal: {goal}\n\nContributions so far:\n{prior}"

        text = await self.ask(system_instruction, user_instruction, COLLABORATION_SAMPLING)

        return AgentContribution(
            agent_id=self.agent_id,
            contribution_text=text,
            confidence_score=self.base_confidence * self.relevance_to(goal),
        )
