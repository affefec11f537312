"""
Workflow orchestrator.

Runs a WorkflowDefinition against an AgentRegistry and returns one
AgentExecutionResult per declared step, in declaration order.

Two scheduling modes:
  - Sequential: no step carries a dependency annotation. Steps run one after
    another and a failure never stops later steps.
  - Graph: at least one step is annotated. A step starts once everything it
    depends on has settled; independent steps run concurrently up to
    max_concurrency. Dependents of a failed or skipped step are skipped.
    An unannotated step waits for every step declared before it but is not
    skipped when one of them fails.
"""

import asyncio
import time
from dataclasses import replace
from datetime import timedelta
from typing import Any, Mapping, Optional, Union

from rich.console import Console

from ..exceptions import ContextWriteError
from .models import (
    AgentContext,
    AgentExecutionResult,
    ErrorCode,
    WorkflowDefinition,
    WorkflowRunResult,
    WorkflowStep,
    utcnow,
)
from .registry import AgentRegistry

console = Console()

DEFAULT_STEP_TIMEOUT = 120.0
DEFAULT_MAX_CONCURRENCY = 4


class WorkflowOrchestrator:
    def __init__(
        self,
        registry: AgentRegistry,
        step_timeout: Optional[float] = DEFAULT_STEP_TIMEOUT,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        stop_on_first_failure: bool = False,
        verbose: bool = True,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.registry = registry
        self.step_timeout = step_timeout
        self.max_concurrency = max_concurrency
        self.stop_on_first_failure = stop_on_first_failure
        self.verbose = verbose

    async def run_workflow(
        self,
        definition: WorkflowDefinition,
        initial_context: Union[AgentContext, Mapping[str, Any], None] = None,
    ) -> list[AgentExecutionResult]:
        """Execute every step of the definition.

        Raises WorkflowDefinitionError before any step runs if the definition
        is empty, has duplicate names or has a broken dependency graph, and
        ContextWriteError when the given context already holds results for
        any of its steps. Step failures never raise; they come back as failed
        results.
        """
        definition.validate()

        if isinstance(initial_context, AgentContext):
            context = initial_context
        else:
            context = AgentContext(
                input_context=initial_context or {},
                workflow_type=definition.workflow_id,
            )

        recorded = [name for name in definition.step_names() if name in context.intermediate_results]
        if recorded:
            raise ContextWriteError(
                "context already holds results for steps of this workflow",
                workflow=definition.workflow_id,
                steps=recorded,
            )

        if self.verbose:
            mode = "graph" if definition.has_dependencies else "sequential"
            console.print(
                f"[dim]Running {definition.workflow_id} ({len(definition.steps)} steps, {mode})[/dim]"
            )

        if definition.has_dependencies:
            by_name = await self._run_graph(definition, context)
        else:
            by_name = await self._run_sequential(definition, context)

        return [by_name[step.name] for step in definition.steps]

    async def _run_sequential(
        self, definition: WorkflowDefinition, context: AgentContext
    ) -> dict[str, AgentExecutionResult]:
        results: dict[str, AgentExecutionResult] = {}
        aborted_by: Optional[str] = None

        for step in definition.steps:
            if aborted_by is not None:
                results[step.name] = self._aborted(step, aborted_by)
                continue

            result = await self._invoke(step, context.snapshot())
            self._settle(step, result, context)
            results[step.name] = result

            if self._should_abort(step, result):
                aborted_by = step.name

        return results

    async def _run_graph(
        self, definition: WorkflowDefinition, context: AgentContext
    ) -> dict[str, AgentExecutionResult]:
        results: dict[str, AgentExecutionResult] = {}
        order = {name: index for index, name in enumerate(definition.step_names())}
        pending = {step.name: step for step in definition.steps}
        waits = definition.ordering_dependencies()
        running: dict[asyncio.Task, WorkflowStep] = {}
        semaphore = asyncio.Semaphore(self.max_concurrency)
        aborted_by: Optional[str] = None

        try:
            while pending or running:
                for name in list(pending):
                    step = pending[name]
                    declared = sorted(step.dependencies, key=order.__getitem__)

                    if aborted_by is not None:
                        results[name] = self._aborted(step, aborted_by)
                        del pending[name]
                        continue

                    failed_dep = next((d for d in declared if d in results and not results[d].success), None)
                    if failed_dep is not None:
                        results[name] = self._upstream_failed(step, failed_dep)
                        del pending[name]
                        if self.verbose:
                            console.print(f"[yellow]Skipping {name}: upstream step failed: {failed_dep}[/yellow]")
                        continue

                    if all(d in results for d in waits[name]):
                        task = asyncio.create_task(self._invoke_limited(step, context.snapshot(), semaphore))
                        running[task] = step
                        del pending[name]

                if not running:
                    # Skips can unblock further skips; loop again until nothing is pending.
                    continue

                done, _ = await asyncio.wait(running.keys(), return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=lambda t: order[running[t].name]):
                    step = running.pop(task)
                    result = task.result()
                    self._settle(step, result, context)
                    results[step.name] = result
                    if aborted_by is None and self._should_abort(step, result):
                        aborted_by = step.name
        finally:
            for task in running:
                task.cancel()
            if running:
                await asyncio.gather(*running.keys(), return_exceptions=True)

        return results

    async def _invoke_limited(
        self, step: WorkflowStep, context: AgentContext, semaphore: asyncio.Semaphore
    ) -> AgentExecutionResult:
        async with semaphore:
            return await self._invoke(step, context)

    async def _invoke(self, step: WorkflowStep, context: AgentContext) -> AgentExecutionResult:
        agent = self.registry.get(step.agent_id)
        if agent is None:
            console.print(f"[red]Agent not found for step {step.name}: {step.agent_id}[/red]")
            return AgentExecutionResult.failed(
                step_name=step.name,
                error=f"agent not found: {step.agent_id}",
                error_code=ErrorCode.AGENT_NOT_FOUND,
            )

        timeout = step.timeout if step.timeout is not None else self.step_timeout
        start = time.perf_counter()

        try:
            result = await asyncio.wait_for(agent.execute(step, context), timeout=timeout)
        except asyncio.TimeoutError:
            console.print(f"[red]Step {step.name} timed out after {timeout}s[/red]")
            return AgentExecutionResult.failed(
                step_name=step.name,
                error="timeout",
                error_code=ErrorCode.TIMEOUT,
                duration=timedelta(seconds=time.perf_counter() - start),
                agent_id=step.agent_id,
            )
        except Exception as e:
            console.print(f"[red]Agent {step.agent_id} raised in step {step.name}: {e}[/red]")
            return AgentExecutionResult.failed(
                step_name=step.name,
                error=str(e) or type(e).__name__,
                error_code=ErrorCode.HANDLER_ERROR,
                duration=timedelta(seconds=time.perf_counter() - start),
                agent_id=step.agent_id,
            )

        duration = timedelta(seconds=time.perf_counter() - start)

        if not isinstance(result, AgentExecutionResult):
            return AgentExecutionResult.failed(
                step_name=step.name,
                error=f"agent returned {type(result).__name__} instead of a result",
                error_code=ErrorCode.HANDLER_ERROR,
                duration=duration,
                agent_id=step.agent_id,
            )

        return replace(
            result,
            step_name=step.name,
            duration=duration,
            agent_id=result.agent_id or step.agent_id,
        )

    def _settle(self, step: WorkflowStep, result: AgentExecutionResult, context: AgentContext) -> None:
        seconds = result.duration.total_seconds()
        if result.success:
            context.record(step.name, result.output or {})
            if self.verbose:
                console.print(f"[dim]✓ {step.name} ({step.agent_id}) {seconds:.2f}s[/dim]")
        else:
            label = "required" if step.required else "optional"
            console.print(f"[red]✗ {step.name} ({label}): {result.error}[/red]")

    def _should_abort(self, step: WorkflowStep, result: AgentExecutionResult) -> bool:
        return self.stop_on_first_failure and step.required and not result.success

    @staticmethod
    def _aborted(step: WorkflowStep, failed_step: str) -> AgentExecutionResult:
        return AgentExecutionResult.failed(
            step_name=step.name,
            error=f"run aborted: {failed_step} failed",
            error_code=ErrorCode.ABORTED,
            agent_id=step.agent_id,
        )

    @staticmethod
    def _upstream_failed(step: WorkflowStep, failed_step: str) -> AgentExecutionResult:
        return AgentExecutionResult.failed(
            step_name=step.name,
            error=f"upstream step failed: {failed_step}",
            error_code=ErrorCode.UPSTREAM_FAILED,
            agent_id=step.agent_id,
        )

    async def execute_step(
        self,
        step: WorkflowStep,
        context: Union[AgentContext, Mapping[str, Any], None] = None,
    ) -> AgentExecutionResult:
        """Run a single ad-hoc step. The caller's context is never written to."""
        if not isinstance(context, AgentContext):
            context = AgentContext(input_context=context or {})
        result = await self._invoke(step, context.snapshot())
        if not result.success:
            console.print(f"[red]✗ {step.name}: {result.error}[/red]")
        return result

    @staticmethod
    def summarize(
        definition: WorkflowDefinition,
        context: AgentContext,
        results: list[AgentExecutionResult],
    ) -> WorkflowRunResult:
        required = {step.name for step in definition.steps if step.required}
        completed_at = utcnow()
        return WorkflowRunResult(
            workflow_id=context.workflow_id,
            workflow_type=definition.workflow_id,
            success=all(r.success for r in results if r.step_name in required),
            results=list(results),
            duration=completed_at - context.started_at,
            completed_at=completed_at,
        )
