"""
Clinical documentation: transcripts, SOAP notes, discharge summaries.
"""

from typing import Any

from ..clients import SamplingParams
from ..orchestration.models import AgentContext, WorkflowStep
from .base import HealthcareAgent

SOAP_SECTIONS = (
    "S (Subjective): the patient's own description of symptoms",
    "O (Objective): findings and examinations",
    "A (Assessment): diagnosis and evaluation",
    "P (Plan): treatment plan and follow-up",
)


class DocumentationAgent(HealthcareAgent):
    agent_id = "DocumentationAgent"
    name = "Clinical Documentation Assistant"
    capability = "Automated clinical documentation and note generation"
    role_description = "clinical documentation assistant"
    base_confidence = 0.95
    keywords = ("document", "note", "soap", "summary", "record", "transcri", "discharge")
    default_sampling = SamplingParams(temperature=0.2, max_output_tokens=2000)

    def _register_handlers(self) -> None:
        self.register("TranscribeConsultation", self.transcribe_consultation)
        self.register("GenerateSOAPNote", self.generate_soap_note, temperature=0.2)
        self.register("GenerateDischargeSummary", self.generate_discharge_summary, temperature=0.2)
        self.register("GenerateSummaryNote", self.generate_summary_note, temperature=0.2)
        self.register("Documentation", self.generate_admission_documentation)
        self.register("PrepareDocuments", self.prepare_documents)
        self.register("DocumentInitialAssessment", self.document_initial_assessment)

    async def transcribe_consultation(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        transcript = context.require("consultationTranscript", step.name)
        first_line = str(transcript).strip().splitlines()[0]
        return {
            "transcription": str(transcript).strip(),
            "summary": first_line[:200],
        }

    async def generate_soap_note(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "You are an experienced physician writing SOAP notes. Produce a structured, "
            "professional note from the consultation data, following clinical documentation standards."
        )
        transcript = context.result_for("TranscribeConsultation").get("transcription") or context.get(
            "consultationTranscript", ""
        )
        user_instruction = "Write a SOAP note based on:\nTranscript: {}\n\nInclude:\n{}".format(
            transcript or "not available",
            "\n".join(f"- {section}" for section in SOAP_SECTIONS),
        )

        note = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {
            "soapNote": note,
            "language": context.get("language", "en"),
        }

    async def generate_discharge_summary(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "Write a discharge summary that covers the reason for admission, examinations and "
            "treatment given, diagnoses with ICD-10 codes, medication at discharge, the follow-up "
            "plan and patient guidance."
        )
        user_instruction = f"Write the discharge summary.\nContext: {context.input_as_pairs()}"

        summary = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {
            "dischargeSummary": summary,
            "readyForDistribution": True,
        }

    async def generate_summary_note(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = "Summarize the clinical encounter in a short note for the patient record."
        findings = "\n".join(
            f"{name}: {output}" for name, output in context.intermediate_results.items()
        )
        user_instruction = f"Context: {context.input_as_pairs()}\n\nFindings so far:\n{findings or 'none'}"

        note = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {"summaryNote": note}

    async def generate_admission_documentation(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        sections = [
            name for name in ("Triage", "Registration", "InitialAssessment", "ResourceAllocation")
            if name in context.intermediate_results
        ]
        return {
            "documentationType": "AdmissionDocumentation",
            "sections": sections,
            "patientId": context.result_for("Registration").get("patientId"),
        }

    async def prepare_documents(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        return {
            "patientInstructions": "Preparation before the consultation",
            "requiredDocuments": ["Patient health record", "Medication list"],
            "confirmedSlot": context.result_for("ConfirmAvailability").get("confirmedSlot"),
        }

    async def document_initial_assessment(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        urgency = context.result_for("AssessUrgency")
        guidance = context.result_for("ClinicalGuidance")
        return {
            "initialAssessment": urgency.get("assessment", ""),
            "triageCategory": urgency.get("triageCategory", "unknown"),
            "clinicalGuidance": guidance.get("clinicalGuidance", ""),
        }
