"""
Caller-facing entry point that wires configuration, the language-model client,
the agents, the orchestrator, the collaboration workspace and the planner.
"""

import asyncio
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional, Sequence

from rich.console import Console

from . import stats
from .agents import get_default_agents
from .clients import BaseClient, create_client
from .config import Config
from .exceptions import ConfigurationError, WorkflowDefinitionError
from .orchestration import (
    Agent,
    AgentCollaboration,
    AgentContext,
    AgentContribution,
    AgentExecutionResult,
    AgentRegistry,
    CollaborationResult,
    WorkflowDefinition,
    WorkflowOrchestrator,
    WorkflowPlanner,
    WorkflowRunResult,
    WorkflowStep,
    get_workflow,
    list_workflows,
)

console = Console()


def client_from_config(config: Config) -> BaseClient:
    llm = config.llm
    if not llm.is_configured:
        raise ConfigurationError("no language model configured; set llm.api_key and llm.model_name")

    kwargs: dict[str, Any] = {
        "api_key": llm.api_key,
        "base_url": llm.base_url,
        "model_name": llm.model_name,
        "provider": llm.provider,
        "request_timeout": llm.request_timeout,
    }
    if llm.api_version:
        kwargs["api_version"] = llm.api_version
    return create_client(**kwargs)


class HealthcareAgentService:
    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[BaseClient] = None,
        agents: Optional[Iterable[Agent]] = None,
    ):
        self.config = config or Config()
        self.client = client if client is not None else client_from_config(self.config)

        if agents is None:
            agents = get_default_agents(self.client, verbose=self.config.verbose)
        self.registry = AgentRegistry(agents)

        self.orchestrator = WorkflowOrchestrator(
            self.registry,
            step_timeout=self.config.step_timeout,
            max_concurrency=self.config.max_concurrency,
            stop_on_first_failure=self.config.stop_on_first_failure,
            verbose=self.config.verbose,
        )
        self.collaboration = AgentCollaboration(self.registry, self.client, verbose=self.config.verbose)
        self.planner = WorkflowPlanner(self.client, self.registry.describe())
        self.last_run: Optional[WorkflowRunResult] = None

    def _with_overrides(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        steps = []
        for step in definition.steps:
            override = self.config.sampling_for_step(step.name)
            if step.sampling is None and override is not None:
                step = replace(step, sampling=override)
            steps.append(step)
        return replace(definition, steps=steps)

    async def run_workflow(
        self, workflow_id: str, input_context: Optional[Mapping[str, Any]] = None
    ) -> list[AgentExecutionResult]:
        """Run a built-in workflow by id. Raises UnknownWorkflowError for unknown ids."""
        return await self.run_definition(get_workflow(workflow_id), input_context)

    def run_workflow_sync(
        self, workflow_id: str, input_context: Optional[Mapping[str, Any]] = None
    ) -> list[AgentExecutionResult]:
        return asyncio.run(self.run_workflow(workflow_id, input_context))

    async def run_definition(
        self, definition: WorkflowDefinition, input_context: Optional[Mapping[str, Any]] = None
    ) -> list[AgentExecutionResult]:
        stats.reset_stats()
        definition = self._with_overrides(definition)
        context = AgentContext(input_context=input_context or {}, workflow_type=definition.workflow_id)

        results = await self.orchestrator.run_workflow(definition, context)

        self.last_run = self.orchestrator.summarize(definition, context, results)
        return results

    async def plan(
        self, goal: str, input_context: Optional[Mapping[str, Any]] = None
    ) -> Optional[WorkflowDefinition]:
        return await self.planner.plan(goal, input_context)

    async def run_goal(
        self, goal: str, input_context: Optional[Mapping[str, Any]] = None
    ) -> list[AgentExecutionResult]:
        definition = await self.plan(goal, input_context)
        if definition is None:
            raise WorkflowDefinitionError("planner produced no runnable steps", goal=goal)
        return await self.run_definition(definition, input_context)

    async def contribute(self, goal: str, agent_ids: Optional[Sequence[str]] = None) -> list[AgentContribution]:
        stats.reset_stats()
        ids = list(agent_ids) if agent_ids is not None else self.registry.list_agents()
        return await self.collaboration.contribute(goal, ids)

    async def coordinate(self, goal: str, agent_ids: Optional[Sequence[str]] = None) -> CollaborationResult:
        stats.reset_stats()
        ids = list(agent_ids) if agent_ids is not None else self.registry.list_agents()
        return await self.collaboration.coordinate(goal, ids)

    async def execute_step(
        self,
        step_name: str,
        agent_id: str,
        input_context: Optional[Mapping[str, Any]] = None,
    ) -> AgentExecutionResult:
        step = WorkflowStep(name=step_name, agent_id=agent_id, sampling=self.config.sampling_for_step(step_name))
        return await self.orchestrator.execute_step(step, input_context)

    def list_agents(self) -> list[dict[str, Any]]:
        return self.registry.describe()

    def list_workflows(self) -> list[WorkflowDefinition]:
        return list_workflows()

    def get_status(self) -> dict[str, Any]:
        status: dict[str, Any] = {
            "agents": self.registry.list_agents(),
            "model": self.config.llm.model_name,
            "max_concurrency": self.config.max_concurrency,
            "step_timeout": self.config.step_timeout,
            "stop_on_first_failure": self.config.stop_on_first_failure,
            "calls": stats.get_stats().as_dict(),
        }
        if self.last_run is not None:
            status["last_run"] = {
                "workflow": self.last_run.workflow_type,
                "success": self.last_run.success,
                "failed_steps": self.last_run.failed_steps,
            }
        return status

    async def aclose(self) -> None:
        close = getattr(self.client, "aclose", None)
        if close is not None:
            await close()
