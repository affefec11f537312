"""
Built-in healthcare workflows.
"""

from ..exceptions import UnknownWorkflowError
from .models import WorkflowDefinition, WorkflowStep

SCHEDULING = "SchedulingAgent"
DOCUMENTATION = "DocumentationAgent"
TRIAGE = "TriageAgent"
COMMUNICATION = "CommunicationAgent"
ADMINISTRATIVE = "AdministrativeAgent"
CLINICAL = "ClinicalDecisionAgent"


def patient_admission() -> WorkflowDefinition:
    return WorkflowDefinition(
        workflow_id="PatientAdmission",
        name="Patient admission",
        description="Triage, register and assess a patient, then allocate resources and document the admission.",
        steps=[
            WorkflowStep("Triage", TRIAGE),
            WorkflowStep("Registration", ADMINISTRATIVE),
            WorkflowStep("InitialAssessment", CLINICAL),
            WorkflowStep("ResourceAllocation", SCHEDULING),
            WorkflowStep("Documentation", DOCUMENTATION),
            WorkflowStep("PatientCommunication", COMMUNICATION, required=False),
        ],
    )


def appointment_scheduling() -> WorkflowDefinition:
    return WorkflowDefinition(
        workflow_id="AppointmentScheduling",
        name="Appointment scheduling",
        description="Analyze an appointment request, book the best slot and confirm it with the patient.",
        steps=[
            WorkflowStep("AnalyzeRequest", TRIAGE),
            WorkflowStep("FindOptimalSlot", SCHEDULING),
            WorkflowStep("ConfirmAvailability", SCHEDULING),
            WorkflowStep("SendConfirmation", COMMUNICATION),
            WorkflowStep("PrepareDocuments", DOCUMENTATION, required=False),
        ],
    )


def clinical_documentation() -> WorkflowDefinition:
    return WorkflowDefinition(
        workflow_id="ClinicalDocumentation",
        name="Clinical documentation",
        description="Turn a consultation transcript into a coded, compliant SOAP note stored in the health record.",
        steps=[
            WorkflowStep("TranscribeConsultation", DOCUMENTATION),
            WorkflowStep("GenerateSOAPNote", DOCUMENTATION),
            WorkflowStep("SuggestICD10Codes", CLINICAL, required=False),
            WorkflowStep("ValidateCompliance", ADMINISTRATIVE),
            WorkflowStep("StoreInEHR", ADMINISTRATIVE),
        ],
    )


def discharge_process() -> WorkflowDefinition:
    return WorkflowDefinition(
        workflow_id="DischargeProcess",
        name="Discharge process",
        description="Summarize the stay, instruct the patient, bill and notify the general practitioner.",
        steps=[
            WorkflowStep("GenerateDischargeSummary", DOCUMENTATION, depends_on=()),
            WorkflowStep("PrepareInstructions", COMMUNICATION, depends_on={"GenerateDischargeSummary"}),
            WorkflowStep("ScheduleFollowUp", SCHEDULING, depends_on={"GenerateDischargeSummary"}, required=False),
            WorkflowStep("ProcessBilling", ADMINISTRATIVE, depends_on=()),
            WorkflowStep(
                "SendToFastlege",
                COMMUNICATION,
                depends_on={"GenerateDischargeSummary", "PrepareInstructions"},
                description="Send the discharge summary to the patient's regular general practitioner.",
            ),
        ],
    )


def emergency_triage() -> WorkflowDefinition:
    return WorkflowDefinition(
        workflow_id="EmergencyTriage",
        name="Emergency triage",
        description="Assess urgency, alert staff and allocate resources while clinical guidance is prepared.",
        steps=[
            WorkflowStep("AssessUrgency", TRIAGE, depends_on=()),
            WorkflowStep("AlertStaff", COMMUNICATION, depends_on={"AssessUrgency"}),
            WorkflowStep("AllocateResources", SCHEDULING, depends_on={"AssessUrgency"}),
            WorkflowStep("ClinicalGuidance", CLINICAL, depends_on={"AssessUrgency"}),
            WorkflowStep(
                "DocumentInitialAssessment",
                DOCUMENTATION,
                depends_on={"AssessUrgency", "ClinicalGuidance"},
            ),
        ],
    )


WORKFLOWS = {
    "PatientAdmission": patient_admission,
    "AppointmentScheduling": appointment_scheduling,
    "ClinicalDocumentation": clinical_documentation,
    "DischargeProcess": discharge_process,
    "EmergencyTriage": emergency_triage,
}


def get_workflow(workflow_id: str) -> WorkflowDefinition:
    factory = WORKFLOWS.get(workflow_id)
    if factory is None:
        raise UnknownWorkflowError(workflow_id)
    return factory()


def list_workflows() -> list[WorkflowDefinition]:
    return [factory() for factory in WORKFLOWS.values()]
