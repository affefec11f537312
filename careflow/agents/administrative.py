"""
Registration, compliance, health-record storage and billing.

These handlers are rule based and never call the collaborator. Identifiers are
derived from the run's input so that repeated runs over the same input agree.
"""

import uuid
from typing import Any

from ..orchestration.models import AgentContext, WorkflowStep
from .base import HealthcareAgent

CONSULTATION_FEE = 500.00

COMPLIANCE_CHECKS = ("GDPR", "Medical standards", "Data completeness")


def _stable_id(prefix: str, *parts: Any) -> str:
    digest = uuid.uuid5(uuid.NAMESPACE_URL, "|".join(str(p) for p in parts))
    return f"{prefix}-{digest.hex[:8].upper()}"


class AdministrativeAgent(HealthcareAgent):
    agent_id = "AdministrativeAgent"
    name = "Administrative Task Assistant"
    capability = "Billing, insurance, and compliance automation"
    role_description = "healthcare administration assistant"
    base_confidence = 0.88
    keywords = ("billing", "insurance", "complian", "regist", "administr", "record", "invoice")

    def _register_handlers(self) -> None:
        self.register("Registration", self.register_patient)
        self.register("ValidateCompliance", self.validate_compliance)
        self.register("StoreInEHR", self.store_in_ehr)
        self.register("ProcessBilling", self.process_billing)

    async def register_patient(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        patient = context.require("patientInfo", step.name)
        return {
            "registrationComplete": True,
            "patientId": _stable_id("P", patient),
        }

    async def validate_compliance(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        note = context.result_for("GenerateSOAPNote").get("soapNote", "")
        missing = [] if note else ["SOAP note"]
        return {
            "isCompliant": not missing,
            "validationsPassed": list(COMPLIANCE_CHECKS) if not missing else ["GDPR"],
            "missing": missing,
        }

    async def store_in_ehr(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        stored = sorted(context.intermediate_results)
        return {
            "storedInEHR": True,
            "recordId": _stable_id("EHR", context.input_as_pairs(), *stored),
            "documents": stored,
        }

    async def process_billing(self, step: WorkflowStep, context: AgentContext) -> dict[str, Any]:
        return {
            "billingProcessed": True,
            "invoiceGenerated": True,
            "amount": float(context.get("billingAmount", CONSULTATION_FEE)),
        }
