"""
Patient triage and urgency assessment.

Urgency follows a five-level scale. The category is read back out of the
collaborator's free-text assessment, so the first matching pattern wins and
anything unrecognised lands on yellow.
"""

import re
from enum import Enum
from typing import Any

from ..clients import SamplingParams
from ..orchestration.models import AgentContext, WorkflowStep
from .base import HealthcareAgent


class TriageCategory(Enum):
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"

    @property
    def max_wait_minutes(self) -> int:
        return MAX_WAIT_MINUTES[self]

    @property
    def recommended_action(self) -> str:
        if self is TriageCategory.RED:
            return "Immediate treatment"
        return f"Consultation within {self.max_wait_minutes} minutes"


MAX_WAIT_MINUTES = {
    TriageCategory.RED: 0,
    TriageCategory.ORANGE: 10,
    TriageCategory.YELLOW: 60,
    TriageCategory.GREEN: 120,
    TriageCategory.BLUE: 240,
}

URGENCY_PATTERNS = [
    (re.compile(r"\bnon[- ]urgent\b", re.I), TriageCategory.GREEN),
    (re.compile(r"\bsemi[- ]urgent\b", re.I), TriageCategory.YELLOW),
    (re.compile(r"\b(red|critical|life[- ]threatening|immediate)\b", re.I), TriageCategory.RED),
    (re.compile(r"\b(orange|urgent)\b", re.I), TriageCategory.ORANGE),
    (re.compile(r"\byellow\b", re.I), TriageCategory.YELLOW),
    (re.compile(r"\b(green|minor)\b", re.I), TriageCategory.GREEN),
    (re.compile(r"\b(blue|non[- ]acute)\b", re.I), TriageCategory.BLUE),
]

RED_FLAGS = (
    "chest pain",
    "shortness of breath",
    "difficulty breathing",
    "unconscious",
    "seizure",
    "severe bleeding",
    "stroke",
    "slurred speech",
    "anaphylaxis",
    "suicidal",
)

URGENCY_SCORES = {
    TriageCategory.RED: 1.0,
    TriageCategory.ORANGE: 0.85,
    TriageCategory.YELLOW: 0.6,
    TriageCategory.GREEN: 0.35,
    TriageCategory.BLUE: 0.1,
}

TRIAGE_SCALE = "\n".join(
    f"- {category.value.capitalize()}: {category.recommended_action.lower()}" for category in TriageCategory
)


def classify_urgency(text: str) -> TriageCategory:
    for pattern, category in URGENCY_PATTERNS:
        if pattern.search(text or ""):
            return category
    return TriageCategory.YELLOW


def find_red_flags(symptoms: str) -> list[str]:
    lowered = (symptoms or "").lower()
    return [flag for flag in RED_FLAGS if flag in lowered]


class TriageAgent(HealthcareAgent):
    agent_id = "TriageAgent"
    name = "Patient Triage Assistant"
    capability = "Patient triage and urgency assessment"
    role_description = "triage assistant"
    base_confidence = 0.92
    keywords = ("triage", "urgen", "emergency", "symptom", "priorit", "acute")
    default_sampling = SamplingParams(temperature=0.1, max_output_tokens=1000)

    def _register_handlers(self) -> None:
        self.register("Triage", self.perform_triage, temperature=0.1)
        self.register("AnalyzeRequest", self.analyze_request)
        self.register("AssessUrgency", self.assess_urgency, temperature=0.1)

    async def _assess(self, step: WorkflowStep, context: AgentContext, system_instruction: str) -> dict[str, Any]:
        symptoms = str(context.require("symptoms", step.name))
        user_instruction = (
            f"Patient: {context.get('patientInfo', 'not provided')}\n"
            f"Symptoms: {symptoms}\n"
            f"Vital signs: {context.get('vitalSigns', 'not measured')}\n\n"
            "State the triage category and justify it."
        )

        assessment = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        red_flags = find_red_flags(symptoms)
        category = classify_urgency(assessment)
        if red_flags and category not in (TriageCategory.RED, TriageCategory.ORANGE):
            category = TriageCategory.ORANGE

        return {
            "triageCategory": category.value,
            "maxWaitMinutes": category.max_wait_minutes,
            "urgencyScore": URGENCY_SCORES[category],
            "assessment": assessment,
            "recommendedAction": category.recommended_action,
            "redFlags": red_flags,
        }

    async def perform_triage(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "You are an experienced triage nurse. Assess the patient's condition and assign "
            "a triage category based on symptoms, vital signs, history and severity.\n\n"
            f"Categories:\n{TRIAGE_SCALE}"
        )
        return await self._assess(step, context, system_instruction)

    async def assess_urgency(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "Assess emergency department urgency from life-threatening symptoms, pain, "
            "vital signs and level of consciousness.\n\n"
            f"Categories:\n{TRIAGE_SCALE}"
        )
        result = await self._assess(step, context, system_instruction)
        result["alertStaff"] = result["triageCategory"] in (TriageCategory.RED.value, TriageCategory.ORANGE.value)
        return result

    async def analyze_request(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        symptoms = str(context.get("symptoms", ""))
        red_flags = find_red_flags(symptoms)
        return {
            "requestType": "Standard Consultation",
            "urgency": "Urgent" if red_flags else context.get("urgency", "Normal"),
            "recommendedSpecialty": context.get("specialty", "General practice"),
            "redFlags": red_flags,
        }
