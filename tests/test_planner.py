"""Tests for the goal planner."""

import pytest

from careflow.orchestration import WorkflowPlanner
from careflow.orchestration.planner import extract_json_array

from .conftest import StubClient

FENCED_PLAN = """Here is the plan:
```json
[
  {"name": "AssessUrgency", "agent": "TriageAgent", "description": "triage", "dependsOn": []},
  {"name": "AlertStaff", "agent": "CommunicationAgent", "dependsOn": ["AssessUrgency", "Nonexistent"]},
  {"name": "AssessUrgency", "agent": "ClinicalDecisionAgent"}
]
```
"""


class TestExtractJsonArray:
    def test_fenced_block(self):
        assert extract_json_array('```json\n[{"a": 1}]\n```') == [{"a": 1}]

    def test_bare_array(self):
        assert extract_json_array('Steps: [{"a": 1}] done') == [{"a": 1}]

    def test_garbage(self):
        assert extract_json_array("no json here") is None
        assert extract_json_array("[not json") is None


class TestParsePlan:
    def test_duplicates_keep_first_and_unknown_dependencies_are_dropped(self):
        definition = WorkflowPlanner.parse_plan(FENCED_PLAN, "handle the emergency")

        assert definition.step_names() == ["AssessUrgency", "AlertStaff"]
        assert definition.steps[0].agent_id == "TriageAgent"
        assert definition.steps[1].depends_on == frozenset({"AssessUrgency"})
        assert definition.description == "handle the emergency"
        definition.validate()

    def test_plan_without_dependencies_is_sequential(self):
        text = '[{"name": "A", "agent": "X"}, {"name": "B", "agent": "Y"}]'
        definition = WorkflowPlanner.parse_plan(text)
        assert not definition.has_dependencies

    def test_cyclic_plan_falls_back_to_sequential(self):
        text = '[{"name": "A", "agent": "X", "dependsOn": ["B"]}, {"name": "B", "agent": "Y", "dependsOn": ["A"]}]'
        definition = WorkflowPlanner.parse_plan(text)
        assert not definition.has_dependencies
        definition.validate()

    def test_nothing_usable(self):
        assert WorkflowPlanner.parse_plan('[{"agent": "X"}, 3]') is None
        assert WorkflowPlanner.parse_plan("I cannot help with that") is None


class TestPlan:
    @pytest.mark.asyncio
    async def test_plan_asks_the_collaborator(self):
        client = StubClient(text=FENCED_PLAN)
        planner = WorkflowPlanner(client, [{"id": "TriageAgent", "capability": "triage"}])

        definition = await planner.plan("handle the emergency", {"symptoms": "chest pain"})

        assert definition.step_names() == ["AssessUrgency", "AlertStaff"]
        request = client.requests[0]
        assert "TriageAgent: triage" in request["system"]
        assert '"symptoms": "chest pain"' in request["user"]
        assert (request["temperature"], request["max_tokens"]) == (0.3, 2000)
