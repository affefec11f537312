"""
Appointment scheduling and resource allocation.
"""

from typing import Any

from ..clients import SamplingParams
from ..orchestration.models import AgentContext, WorkflowStep
from .base import HealthcareAgent

FOLLOW_UP_DAYS = 14


class SchedulingAgent(HealthcareAgent):
    agent_id = "SchedulingAgent"
    name = "Appointment Scheduling Assistant"
    capability = "Intelligent appointment scheduling and resource optimization"
    role_description = "scheduling assistant"
    base_confidence = 0.9
    keywords = ("schedul", "appointment", "slot", "resource", "follow-up", "booking", "availability")
    default_sampling = SamplingParams(temperature=0.3, max_output_tokens=1000)

    def _register_handlers(self) -> None:
        self.register("FindOptimalSlot", self.find_optimal_slot, temperature=0.3)
        self.register("ConfirmAvailability", self.confirm_availability)
        self.register("ResourceAllocation", self.allocate_resources)
        self.register("AllocateResources", self.allocate_resources)
        self.register("ScheduleFollowUp", self.schedule_follow_up, temperature=0.3)

    async def find_optimal_slot(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "You are an assistant that optimizes healthcare appointment scheduling. "
            "Weigh patient needs, doctor specialization, urgency and availability, "
            "and recommend the slot that best balances patient needs and clinic efficiency."
        )
        analysis = context.result_for("AnalyzeRequest")
        user_instruction = (
            f"Patient: {context.get('patientInfo', 'not provided')}\n"
            f"Symptoms: {context.get('symptoms', 'not provided')}\n"
            f"Urgency: {analysis.get('urgency') or context.get('urgency', 'Normal')}\n"
            f"Preferred time: {context.get('preferredTime', 'flexible')}"
        )

        recommendation = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {
            "recommendedSlot": recommendation,
            "alternativeSlots": [],
            "optimizationScore": 0.95,
        }

    async def confirm_availability(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        slot = context.get("requestedSlot") or context.result_for("FindOptimalSlot").get("recommendedSlot", "")
        return {
            "isAvailable": bool(slot),
            "confirmedSlot": slot,
        }

    async def allocate_resources(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        urgency = context.first_result("AssessUrgency", "Triage").get("triageCategory", "")
        emergency = urgency.lower() in ("red", "orange")
        return {
            "room": "Resuscitation bay 1" if emergency else "Consultation room 3",
            "equipment": ["ECG", "Blood pressure monitor"],
            "durationMinutes": 60 if emergency else 30,
        }

    async def schedule_follow_up(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        system_instruction = (
            "Based on the consultation, decide whether follow-up is needed and when. "
            "Follow national guidelines for follow-up of the condition in question."
        )
        summary = context.result_for("GenerateDischargeSummary").get("dischargeSummary", "")
        user_instruction = f"Assess follow-up needs.\nDischarge summary: {summary or 'not available'}"

        reason = await self.ask(system_instruction, user_instruction, self.sampling_for(step))

        return {
            "followUpRequired": True,
            "followUpInDays": FOLLOW_UP_DAYS,
            "reason": reason,
        }
