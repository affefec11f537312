"""
Workflow orchestration: data model, agent registry, orchestrator,
collaboration workspace and planner.
"""

from .collaboration import AgentCollaboration, rank_contributions, select_winner
from .models import (
    AgentContext,
    AgentContribution,
    AgentExecutionResult,
    AgentWorkspace,
    CollaborationResult,
    ErrorCode,
    WorkflowDefinition,
    WorkflowRunResult,
    WorkflowStep,
)
from .orchestrator import WorkflowOrchestrator
from .planner import WorkflowPlanner
from .registry import Agent, AgentRegistry
from .workflows import WORKFLOWS, get_workflow, list_workflows

__all__ = [
    "Agent",
    "AgentRegistry",
    "AgentCollaboration",
    "AgentContext",
    "AgentContribution",
    "AgentExecutionResult",
    "AgentWorkspace",
    "CollaborationResult",
    "ErrorCode",
    "WorkflowDefinition",
    "WorkflowOrchestrator",
    "WorkflowPlanner",
    "WorkflowRunResult",
    "WorkflowStep",
    "WORKFLOWS",
    "get_workflow",
    "list_workflows",
    "rank_contributions",
    "select_winner",
]
