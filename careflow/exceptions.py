"""
Exception hierarchy for CareFlow.

Only contract violations (bad workflow definitions, unknown workflow ids,
broken configuration, a run context that already holds results) are meant to
reach callers, and always before any step runs. Everything raised while a
step runs is caught at the agent or orchestrator boundary and turned into a
failed AgentExecutionResult.

    CareFlowError
    ├── WorkflowDefinitionError
    ├── UnknownWorkflowError
    ├── ContextWriteError
    ├── MissingInputError
    ├── UpstreamError
    │   └── UpstreamTimeoutError
    └── ConfigurationError
"""

from typing import Any


class CareFlowError(Exception):
    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class WorkflowDefinitionError(CareFlowError):
    """Workflow definition is empty, has duplicate names, or has a broken dependency graph."""


class UnknownWorkflowError(CareFlowError):
    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"unknown workflow: {workflow_id}")


class ContextWriteError(CareFlowError):
    """A step result was written twice, or a run was given a context that already holds it."""


class MissingInputError(CareFlowError):
    def __init__(self, key: str, step_name: str = ""):
        self.key = key
        self.step_name = step_name
        if step_name:
            super().__init__(f"missing required input '{key}' for step {step_name}")
        else:
            super().__init__(f"missing required input '{key}'")


class UpstreamError(CareFlowError):
    """The language-model collaborator was unreachable, rate-limited or returned garbage."""


class UpstreamTimeoutError(UpstreamError):
    pass


class ConfigurationError(CareFlowError):
    pass
