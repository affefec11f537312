"""
Healthcare agents.
"""

from ..clients import BaseClient
from .administrative import AdministrativeAgent
from .base import HealthcareAgent, StepHandler
from .clinical import ClinicalDecisionAgent
from .communication import CommunicationAgent
from .documentation import DocumentationAgent
from .scheduling import SchedulingAgent
from .triage import TriageAgent, TriageCategory, classify_urgency

AGENT_CLASSES = [
    SchedulingAgent,
    DocumentationAgent,
    TriageAgent,
    CommunicationAgent,
    AdministrativeAgent,
    ClinicalDecisionAgent,
]


def get_default_agents(client: BaseClient, verbose: bool = True) -> list[HealthcareAgent]:
    return [cls(client, verbose=verbose) for cls in AGENT_CLASSES]


__all__ = [
    "HealthcareAgent",
    "StepHandler",
    "SchedulingAgent",
    "DocumentationAgent",
    "TriageAgent",
    "TriageCategory",
    "classify_urgency",
    "CommunicationAgent",
    "AdministrativeAgent",
    "ClinicalDecisionAgent",
    "AGENT_CLASSES",
    "get_default_agents",
]
