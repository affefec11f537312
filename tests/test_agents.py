"""Tests for the healthcare agents: dispatch, fallback, sampling and error mapping."""

import asyncio

import pytest

from careflow import stats
from careflow.agents import (
    AdministrativeAgent,
    ClinicalDecisionAgent,
    CommunicationAgent,
    DocumentationAgent,
    SchedulingAgent,
    TriageAgent,
    TriageCategory,
    classify_urgency,
    get_default_agents,
)
from careflow.agents.clinical import extract_icd10_codes
from careflow.agents.triage import find_red_flags
from careflow.clients import SamplingParams
from careflow.exceptions import UpstreamError, UpstreamTimeoutError
from careflow.orchestration import AgentContext, AgentWorkspace, ErrorCode, WorkflowStep

from .conftest import StubClient


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_step_uses_generic_fallback(self):
        client = StubClient(text="handled it")
        agent = SchedulingAgent(client, verbose=False)
        context = AgentContext(input_context={"patientInfo": "Kari", "ward": "3B"})

        result = await agent.execute(WorkflowStep("ReorderSupplies", "SchedulingAgent"), context)

        assert result.success
        assert result.output == {"stepName": "ReorderSupplies", "handled": True, "result": "handled it"}
        request = client.requests[0]
        assert "scheduling assistant" in request["system"]
        assert "ReorderSupplies" in request["system"]
        assert request["user"] == "Context: patientInfo=Kari, ward=3B"
        assert stats.get_stats().fallback_calls == 1

    @pytest.mark.asyncio
    async def test_every_agent_answers_unknown_steps(self):
        client = StubClient()
        for agent in get_default_agents(client, verbose=False):
            result = await agent.execute(WorkflowStep("SomethingNew", agent.agent_id), AgentContext())
            assert result.success, agent.agent_id
            assert result.output["handled"] is True

    def test_handled_steps_match_the_catalog(self):
        agents = {a.agent_id: a for a in get_default_agents(StubClient(), verbose=False)}
        assert set(agents["TriageAgent"].handled_steps()) == {"Triage", "AnalyzeRequest", "AssessUrgency"}
        assert "AllocateResources" in agents["SchedulingAgent"].handled_steps()
        assert "GenerateSummaryNote" in agents["DocumentationAgent"].handled_steps()
        assert agents["AdministrativeAgent"].handles("StoreInEHR")


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_missing_input_is_a_handler_error(self):
        agent = TriageAgent(StubClient(), verbose=False)

        result = await agent.execute(WorkflowStep("Triage", "TriageAgent"), AgentContext())

        assert result.success is False
        assert result.error_code is ErrorCode.HANDLER_ERROR
        assert "symptoms" in result.error

    @pytest.mark.asyncio
    async def test_upstream_timeout(self):
        agent = TriageAgent(StubClient(error=UpstreamTimeoutError("slow")), verbose=False)
        context = AgentContext(input_context={"symptoms": "cough"})

        result = await agent.execute(WorkflowStep("Triage", "TriageAgent"), context)

        assert result.error == "timeout"
        assert result.error_code is ErrorCode.TIMEOUT
        assert stats.get_stats().failed_calls == 1

    @pytest.mark.asyncio
    async def test_upstream_failure(self):
        agent = TriageAgent(StubClient(error=UpstreamError("rate limited")), verbose=False)
        context = AgentContext(input_context={"symptoms": "cough"})

        result = await agent.execute(WorkflowStep("Triage", "TriageAgent"), context)

        assert result.error_code is ErrorCode.UPSTREAM_ERROR
        assert "rate limited" in result.error

    @pytest.mark.asyncio
    async def test_unexpected_client_error_is_wrapped(self):
        agent = TriageAgent(StubClient(error=ConnectionResetError("reset")), verbose=False)
        context = AgentContext(input_context={"symptoms": "cough"})

        result = await agent.execute(WorkflowStep("Triage", "TriageAgent"), context)

        assert result.error_code is ErrorCode.UPSTREAM_ERROR

    @pytest.mark.asyncio
    async def test_empty_reply_is_an_upstream_error(self):
        agent = DocumentationAgent(StubClient(text="   "), verbose=False)

        result = await agent.execute(WorkflowStep("GenerateDischargeSummary", "DocumentationAgent"), AgentContext())

        assert result.error_code is ErrorCode.UPSTREAM_ERROR

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        agent = TriageAgent(StubClient(delay=5.0), verbose=False)
        context = AgentContext(input_context={"symptoms": "cough"})

        task = asyncio.ensure_future(agent.execute(WorkflowStep("Triage", "TriageAgent"), context))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestSampling:
    @pytest.mark.asyncio
    async def test_handler_default_sampling(self):
        client = StubClient(text="Green, minor")
        agent = TriageAgent(client, verbose=False)

        await agent.execute(WorkflowStep("Triage", "TriageAgent"), AgentContext(input_context={"symptoms": "rash"}))

        assert client.requests[0]["temperature"] == 0.1
        assert client.requests[0]["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_step_sampling_wins(self):
        client = StubClient(text="Green")
        agent = TriageAgent(client, verbose=False)
        step = WorkflowStep("Triage", "TriageAgent", sampling=SamplingParams(temperature=0.7, max_output_tokens=50))

        await agent.execute(step, AgentContext(input_context={"symptoms": "rash"}))

        assert client.requests[0]["temperature"] == 0.7
        assert client.requests[0]["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_agent_defaults(self):
        client = StubClient()
        await CommunicationAgent(client, verbose=False).execute(WorkflowStep("Unknown", "CommunicationAgent"), AgentContext())
        await DocumentationAgent(client, verbose=False).execute(WorkflowStep("Unknown", "DocumentationAgent"), AgentContext())

        assert (client.requests[0]["temperature"], client.requests[0]["max_tokens"]) == (0.4, 500)
        assert (client.requests[1]["temperature"], client.requests[1]["max_tokens"]) == (0.2, 2000)


class TestTriage:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Category RED - life-threatening", TriageCategory.RED),
            ("This is urgent", TriageCategory.ORANGE),
            ("Semi-urgent, yellow", TriageCategory.YELLOW),
            ("non-urgent presentation", TriageCategory.GREEN),
            ("minor injury", TriageCategory.GREEN),
            ("blue: non-acute", TriageCategory.BLUE),
            ("no category given", TriageCategory.YELLOW),
        ],
    )
    def test_classify_urgency(self, text, expected):
        assert classify_urgency(text) is expected

    def test_max_wait_minutes(self):
        assert [c.max_wait_minutes for c in TriageCategory] == [0, 10, 60, 120, 240]

    def test_red_flags(self):
        assert find_red_flags("Sudden CHEST PAIN and shortness of breath") == ["chest pain", "shortness of breath"]
        assert find_red_flags("") == []

    @pytest.mark.asyncio
    async def test_red_flags_raise_a_mild_assessment(self):
        agent = TriageAgent(StubClient(text="Looks green to me"), verbose=False)
        context = AgentContext(input_context={"symptoms": "chest pain at rest"})

        result = await agent.execute(WorkflowStep("Triage", "TriageAgent"), context)

        assert result.output["triageCategory"] == "orange"
        assert result.output["redFlags"] == ["chest pain"]
        assert result.output["maxWaitMinutes"] == 10

    @pytest.mark.asyncio
    async def test_assess_urgency_alerts_staff(self):
        agent = TriageAgent(StubClient(text="Critical, immediate resuscitation"), verbose=False)
        context = AgentContext(input_context={"symptoms": "unconscious"})

        result = await agent.execute(WorkflowStep("AssessUrgency", "TriageAgent"), context)

        assert result.output["triageCategory"] == "red"
        assert result.output["alertStaff"] is True


class TestRuleBasedHandlers:
    @pytest.mark.asyncio
    async def test_registration_ids_are_stable(self):
        client = StubClient()
        agent = AdministrativeAgent(client, verbose=False)
        context = AgentContext(input_context={"patientInfo": "Kari Nordmann"})

        first = await agent.execute(WorkflowStep("Registration", "AdministrativeAgent"), context)
        second = await agent.execute(WorkflowStep("Registration", "AdministrativeAgent"), context)

        assert first.output["patientId"] == second.output["patientId"]
        assert first.output["patientId"].startswith("P-")
        assert client.requests == []

    @pytest.mark.asyncio
    async def test_compliance_requires_a_soap_note(self):
        agent = AdministrativeAgent(StubClient(), verbose=False)
        context = AgentContext()

        result = await agent.execute(WorkflowStep("ValidateCompliance", "AdministrativeAgent"), context)
        assert result.output["isCompliant"] is False

        context.record("GenerateSOAPNote", {"soapNote": "S: ..."})
        result = await agent.execute(WorkflowStep("ValidateCompliance", "AdministrativeAgent"), context)
        assert result.output["isCompliant"] is True

    @pytest.mark.asyncio
    async def test_resource_allocation_follows_triage(self):
        agent = SchedulingAgent(StubClient(), verbose=False)
        context = AgentContext()
        context.record("AssessUrgency", {"triageCategory": "red"})

        result = await agent.execute(WorkflowStep("AllocateResources", "SchedulingAgent"), context)

        assert result.output["room"] == "Resuscitation bay 1"

    @pytest.mark.asyncio
    async def test_icd10_codes_are_extracted(self):
        client = StubClient(text="R50.9 Fever, unspecified\nR51 Headache")
        agent = ClinicalDecisionAgent(client, verbose=False)
        context = AgentContext()
        context.record("GenerateSOAPNote", {"soapNote": "Fever and headache"})

        result = await agent.execute(WorkflowStep("SuggestICD10Codes", "ClinicalDecisionAgent"), context)

        assert result.output["suggestedCodes"] == ["R50.9", "R51"]
        assert result.output["primaryDiagnosis"] == "R50.9"

    def test_extract_icd10_codes_deduplicates(self):
        assert extract_icd10_codes("J18.9, J18.9 and I10") == ["J18.9", "I10"]


class TestContribution:
    @pytest.mark.asyncio
    async def test_confidence_scales_with_relevance(self):
        client = StubClient(text="I can book it")
        agent = SchedulingAgent(client, verbose=False)

        relevant = await agent.contribute_to_collaboration(
            "Schedule a follow-up appointment", AgentWorkspace(goal="g")
        )
        unrelated = await agent.contribute_to_collaboration("Explain the diagnosis", AgentWorkspace(goal="g"))

        assert relevant.confidence_score == pytest.approx(0.9)
        assert unrelated.confidence_score == pytest.approx(0.45)
        assert relevant.contribution_text == "I can book it"

    @pytest.mark.asyncio
    async def test_contribution_does_not_touch_workspace(self):
        agent = TriageAgent(StubClient(), verbose=False)
        workspace = AgentWorkspace(goal="triage the patient")

        await agent.contribute_to_collaboration("triage the patient", workspace.snapshot())

        assert workspace.contributions == []
