"""
Patient and staff communication.
"""

from typing import Any

from ..clients import SamplingParams
from ..orchestration.models import AgentContext, WorkflowStep
from .base import HealthcareAgent


class CommunicationAgent(HealthcareAgent):
    agent_id = "CommunicationAgent"
    name = "Patient Communication Assistant"
    capability = "Automated patient communication and notifications"
    role_description = "patient communication assistant"
    base_confidence = 0.92
    keywords = ("communicat", "notif", "message", "confirm", "instruction", "alert", "inform")
    default_sampling = SamplingParams(temperature=0.4, max_output_tokens=500)

    def _register_handlers(self) -> None:
        self.register("SendConfirmation", self.send_confirmation, temperature=0.4)
        self.register("PatientCommunication", self.patient_communication)
        self.register("PrepareInstructions", self.prepare_instructions)
        self.register("SendToFastlege", self.send_to_gp)
        self.register("AlertStaff", self.alert_staff)

    async def send_confirmation(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "Write a friendly, professional appointment confirmation message. "
            "Include all relevant details and any preparation instructions, in patient-friendly language."
        )
        slot = context.result_for("ConfirmAvailability").get("confirmedSlot", "")
        user_instruction = (
            f"Patient: {context.get('patientInfo', 'not provided')}\n"
            f"Confirmed slot: {slot or 'to be announced'}"
        )

        message = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {
            "messageSent": True,
            "confirmationMessage": message,
            "deliveryMethod": "Email and SMS",
        }

    async def patient_communication(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        return {
            "communicationSent": True,
            "patientId": context.result_for("Registration").get("patientId"),
        }

    async def prepare_instructions(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        summary = context.result_for("GenerateDischargeSummary")
        return {
            "instructions": "Complete patient care instructions prepared",
            "basedOnDischargeSummary": bool(summary.get("dischargeSummary")),
            "educationalMaterials": ["Medication guide", "Recovery timeline"],
        }

    async def send_to_gp(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        return {
            "sentToGP": True,
            "deliveryMethod": "Secure health portal",
            "attachments": [
                name for name in ("GenerateDischargeSummary", "PrepareInstructions")
                if name in context.intermediate_results
            ],
        }

    async def alert_staff(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        urgency = context.first_result("AssessUrgency", "Triage")
        category = urgency.get("triageCategory", "unknown")
        high = category in ("red", "orange")
        return {
            "staffAlerted": True,
            "alertLevel": "High" if high else "Normal",
            "triageCategory": category,
            "notificationsSent": 3 if high else 1,
        }
