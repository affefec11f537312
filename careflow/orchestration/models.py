"""
Workflow data model: steps, definitions, run context and execution results.
"""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..clients.base import SamplingParams
from ..exceptions import ContextWriteError, MissingInputError, WorkflowDefinitionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorCode(Enum):
    AGENT_NOT_FOUND = "agent_not_found"
    HANDLER_ERROR = "handler_error"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"
    UPSTREAM_FAILED = "upstream_failed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class WorkflowStep:
    name: str
    agent_id: str
    depends_on: Optional[frozenset[str]] = None
    required: bool = True
    sampling: Optional[SamplingParams] = None
    timeout: Optional[float] = None
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        if self.depends_on is not None and not isinstance(self.depends_on, frozenset):
            object.__setattr__(self, "depends_on", frozenset(self.depends_on))

    @property
    def dependencies(self) -> frozenset[str]:
        return self.depends_on or frozenset()


@dataclass
class WorkflowDefinition:
    workflow_id: str
    steps: list[WorkflowStep]
    name: str = ""
    description: str = ""

    @property
    def has_dependencies(self) -> bool:
        return any(step.depends_on is not None for step in self.steps)

    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    def validate(self) -> None:
        if not self.steps:
            raise WorkflowDefinitionError("workflow has no steps", workflow=self.workflow_id)

        seen: set[str] = set()
        for step in self.steps:
            if not step.name:
                raise WorkflowDefinitionError("step name must not be empty", workflow=self.workflow_id)
            if step.name in seen:
                raise WorkflowDefinitionError(
                    f"duplicate step name: {step.name}", workflow=self.workflow_id
                )
            seen.add(step.name)

        for step in self.steps:
            if step.name in step.dependencies:
                raise WorkflowDefinitionError(
                    f"step {step.name} depends on itself", workflow=self.workflow_id
                )
            unknown = sorted(step.dependencies - seen)
            if unknown:
                raise WorkflowDefinitionError(
                    f"step {step.name} depends on unknown steps: {', '.join(unknown)}",
                    workflow=self.workflow_id,
                )

        self.topological_order()

    def ordering_dependencies(self) -> dict[str, frozenset[str]]:
        """Steps each step waits for before it may start.

        Once any step is annotated, an unannotated step waits for every step
        declared before it. Only declared dependencies propagate failures.
        """
        annotated = self.has_dependencies
        waits: dict[str, frozenset[str]] = {}
        earlier: list[str] = []
        for step in self.steps:
            if annotated and step.depends_on is None:
                waits[step.name] = frozenset(earlier)
            else:
                waits[step.name] = step.dependencies
            earlier.append(step.name)
        return waits

    def topological_order(self) -> list[str]:
        """Kahn's algorithm, breaking ties by declaration order."""
        remaining = {name: set(deps) for name, deps in self.ordering_dependencies().items()}
        order: list[str] = []

        while remaining:
            ready = [name for name in self.step_names() if name in remaining and not remaining[name]]
            if not ready:
                raise WorkflowDefinitionError(
                    f"dependency cycle between steps: {', '.join(sorted(remaining))}",
                    workflow=self.workflow_id,
                )
            for name in ready:
                del remaining[name]
                order.append(name)
            for deps in remaining.values():
                deps.difference_update(ready)

        return order


@dataclass
class AgentContext:
    input_context: Mapping[str, Any] = field(default_factory=dict)
    intermediate_results: dict[str, dict[str, Any]] = field(default_factory=dict)
    workflow_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    workflow_type: str = ""
    started_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.input_context = MappingProxyType(dict(self.input_context))

    def record(self, step_name: str, output: Mapping[str, Any]) -> None:
        if step_name in self.intermediate_results:
            raise ContextWriteError("step result already recorded", step=step_name)
        self.intermediate_results[step_name] = dict(output)

    def snapshot(self) -> "AgentContext":
        return AgentContext(
            input_context=self.input_context,
            intermediate_results=copy.deepcopy(self.intermediate_results),
            workflow_id=self.workflow_id,
            workflow_type=self.workflow_type,
            started_at=self.started_at,
        )

    def require(self, key: str, step_name: str = "") -> Any:
        value = self.input_context.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingInputError(key, step_name)
        return value

    def get(self, key: str, default: Any = None) -> Any:
        return self.input_context.get(key, default)

    def result_for(self, step_name: str) -> dict[str, Any]:
        return self.intermediate_results.get(step_name, {})

    def first_result(self, *step_names: str) -> dict[str, Any]:
        for name in step_names:
            if name in self.intermediate_results:
                return self.intermediate_results[name]
        return {}

    def input_as_pairs(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.input_context.items())


@dataclass
class AgentExecutionResult:
    step_name: str
    success: bool
    output: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    duration: timedelta = timedelta(0)
    error_code: Optional[ErrorCode] = None
    agent_id: Optional[str] = None

    def __post_init__(self):
        if self.success and (self.output is None or self.error is not None):
            raise ValueError("a successful result carries output and no error")
        if not self.success and (self.error is None or self.output is not None):
            raise ValueError("a failed result carries an error and no output")

    @classmethod
    def succeeded(
        cls,
        step_name: str,
        output: Mapping[str, Any],
        duration: timedelta = timedelta(0),
        agent_id: Optional[str] = None,
    ) -> "AgentExecutionResult":
        return cls(step_name=step_name, success=True, output=dict(output), duration=duration, agent_id=agent_id)

    @classmethod
    def failed(
        cls,
        step_name: str,
        error: str,
        error_code: ErrorCode,
        duration: timedelta = timedelta(0),
        agent_id: Optional[str] = None,
    ) -> "AgentExecutionResult":
        return cls(
            step_name=step_name,
            success=False,
            error=error or error_code.value,
            duration=duration,
            error_code=error_code,
            agent_id=agent_id,
        )

    @property
    def was_skipped(self) -> bool:
        return self.error_code in (ErrorCode.UPSTREAM_FAILED, ErrorCode.ABORTED)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "stepName": self.step_name,
            "success": self.success,
            "durationMs": round(self.duration.total_seconds() * 1000, 3),
        }
        if self.agent_id:
            result["agentId"] = self.agent_id
        if self.success:
            result["output"] = self.output
        else:
            result["error"] = self.error
            result["errorCode"] = self.error_code.value if self.error_code else None
        return result


@dataclass
class WorkflowRunResult:
    workflow_id: str
    workflow_type: str
    success: bool
    results: list[AgentExecutionResult] = field(default_factory=list)
    duration: timedelta = timedelta(0)
    completed_at: datetime = field(default_factory=utcnow)

    @property
    def failed_steps(self) -> list[str]:
        return [r.step_name for r in self.results if not r.success]

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflowId": self.workflow_id,
            "workflowType": self.workflow_type,
            "success": self.success,
            "durationMs": round(self.duration.total_seconds() * 1000, 3),
            "completedAt": self.completed_at.isoformat(),
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class AgentContribution:
    agent_id: str
    contribution_text: str
    confidence_score: float
    contributed_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.confidence_score = min(1.0, max(0.0, float(self.confidence_score)))


@dataclass
class AgentWorkspace:
    goal: str
    contributions: Sequence[AgentContribution] = field(default_factory=list)
    workspace_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    shared_data: dict[str, Any] = field(default_factory=dict)

    def append(self, contribution: AgentContribution) -> None:
        self.contributions.append(contribution)

    def extend(self, contributions: Iterable[AgentContribution]) -> None:
        for contribution in contributions:
            self.append(contribution)

    def snapshot(self) -> "AgentWorkspace":
        return AgentWorkspace(
            goal=self.goal,
            contributions=tuple(self.contributions),
            workspace_id=self.workspace_id,
            shared_data=copy.deepcopy(self.shared_data),
        )


@dataclass
class CollaborationResult:
    goal: str
    synthesized_output: str
    contribution_count: int
    confidence_score: float
    contributions: list[AgentContribution] = field(default_factory=list)
    winner: Optional[AgentContribution] = None
