"""
Clinical decision support.
"""

import re
from typing import Any

from ..clients import SamplingParams
from ..orchestration.models import AgentContext, WorkflowStep
from .base import HealthcareAgent

ICD10_PATTERN = re.compile(r"\b([A-TV-Z][0-9]{2}(?:\.[0-9A-Z]{1,4})?)\b")


def extract_icd10_codes(text: str) -> list[str]:
    codes: list[str] = []
    for match in ICD10_PATTERN.finditer(text or ""):
        if match.group(1) not in codes:
            codes.append(match.group(1))
    return codes


class ClinicalDecisionAgent(HealthcareAgent):
    agent_id = "ClinicalDecisionAgent"
    name = "Clinical Decision Support Assistant"
    capability = "Diagnosis support and treatment recommendations"
    role_description = "clinical decision support assistant"
    base_confidence = 0.91
    keywords = ("diagnos", "clinical", "treatment", "icd", "assessment", "medication", "guidance")
    default_sampling = SamplingParams(temperature=0.2, max_output_tokens=1000)

    def _register_handlers(self) -> None:
        self.register("InitialAssessment", self.initial_assessment, temperature=0.2)
        self.register("SuggestICD10Codes", self.suggest_icd10_codes, temperature=0.2)
        self.register("ClinicalGuidance", self.clinical_guidance, temperature=0.2)

    async def initial_assessment(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "You are an experienced physician providing an initial clinical assessment. "
            "Analyze the presentation and give structured recommendations: differential "
            "diagnoses, recommended tests and initial management."
        )
        triage = context.result_for("Triage")
        user_instruction = (
            f"Provide an initial assessment for: {context.get('patientInfo', 'not provided')}\n"
            f"Symptoms: {context.get('symptoms', 'not provided')}\n"
            f"Triage category: {triage.get('triageCategory', 'not assessed')}"
        )

        assessment = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {
            "initialAssessment": assessment,
            "suggestedTests": ["Complete blood count", "Basic metabolic panel"],
            "urgencyLevel": triage.get("triageCategory", "moderate"),
        }

    async def suggest_icd10_codes(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        note = context.result_for("GenerateSOAPNote").get("soapNote", "")
        if not note:
            note = context.require("consultationTranscript", step.name)

        system_instruction = (
            "Suggest ICD-10 codes for the clinical note below. List each code followed by "
            "its description, most likely diagnosis first."
        )
        suggestion = await self.ask(system_instruction, str(note), self.sampling_for(step))

        codes = extract_icd10_codes(suggestion)
        return {
            "suggestedCodes": codes,
            "primaryDiagnosis": codes[0] if codes else None,
            "rationale": suggestion,
        }

    async def clinical_guidance(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "Provide immediate clinical guidance for an emergency situation. Follow emergency "
            "medicine protocols and be specific, clear and actionable."
        )
        urgency = context.result_for("AssessUrgency")
        user_instruction = (
            f"Symptoms: {context.get('symptoms', 'not provided')}\n"
            f"Urgency assessment: {urgency.get('assessment', 'not available')}"
        )

        guidance = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {
            "clinicalGuidance": guidance,
            "protocolsApplied": ["ABCDE assessment", "Emergency stabilization"],
        }
