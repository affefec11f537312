"""
Goal planner: asks the collaborator to break a goal into workflow steps.
"""

import json
import re
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional

from rich.console import Console

from ..clients import BaseClient, CompletionRequest, SamplingParams
from ..exceptions import WorkflowDefinitionError
from .models import WorkflowDefinition, WorkflowStep

console = Console()

PLANNING_SAMPLING = SamplingParams(temperature=0.3, max_output_tokens=2000)

FENCED_JSON = re.compile(r"```(?:json)?\s*(\[[\s\S]*?\])\s*```", re.I)
BARE_ARRAY = re.compile(r"\[[\s\S]*\]")


def extract_json_array(text: str) -> Optional[list]:
    """Pull the first JSON array out of a collaborator reply, fenced or bare."""
    candidates = [m.group(1) for m in FENCED_JSON.finditer(text or "")]
    bare = BARE_ARRAY.search(text or "")
    if bare:
        candidates.append(bare.group())

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, list):
            return parsed
    return None


def _as_names(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v]
    return []


class WorkflowPlanner:
    def __init__(self, client: BaseClient, agent_descriptions: Iterable[Mapping[str, Any]] = ()):
        self.client = client
        self.agent_descriptions = list(agent_descriptions)

    def _system_instruction(self) -> str:
        agents = "\n".join(
            f"- {a['id']}: {a.get('capability', '')}" for a in self.agent_descriptions
        ) or "- (no agents registered)"
        return (
            "You plan healthcare workflows. Break the goal into concrete steps, each handled by "
            "one of the available agents.\n\n"
            f"Available agents:\n{agents}\n\n"
            "Answer with a JSON array only. Each element is an object with the keys "
            '"name" (unique step name), "agent" (agent id), "description" and '
            '"dependsOn" (list of step names that must finish first).'
        )

    async def plan(self, goal: str, input_context: Optional[Mapping[str, Any]] = None) -> Optional[WorkflowDefinition]:
        context_json = json.dumps(dict(input_context or {}), ensure_ascii=False, default=str)
        request = CompletionRequest(
            system_instruction=self._system_instruction(),
            user_instruction=f"Goal: {goal}\nContext: {context_json}",
            sampling=PLANNING_SAMPLING,
        )
        response = await self.client.complete(request)
        definition = self.parse_plan(response.text, goal)

        if definition is None:
            console.print("[yellow]Planner returned no usable steps[/yellow]")
        else:
            console.print(f"[dim]Planned {len(definition.steps)} steps for goal[/dim]")
        return definition

    @staticmethod
    def parse_plan(text: str, goal: str = "") -> Optional[WorkflowDefinition]:
        items = extract_json_array(text)
        if not items:
            return None

        raw: list[dict[str, Any]] = []
        seen: set[str] = set()
        for item in items:
            if not isinstance(item, dict):
                continue
            name = str(item.get("name") or "").strip()
            agent_id = str(item.get("agent") or item.get("agentId") or "").strip()
            if not name or not agent_id or name in seen:
                continue
            seen.add(name)
            raw.append({
                "name": name,
                "agent_id": agent_id,
                "description": str(item.get("description") or ""),
                "depends_on": _as_names(item.get("dependsOn", item.get("dependencies"))),
            })

        if not raw:
            return None

        annotated = any(entry["depends_on"] for entry in raw)
        steps = []
        for entry in raw:
            deps = [d for d in entry["depends_on"] if d in seen and d != entry["name"]]
            steps.append(WorkflowStep(
                name=entry["name"],
                agent_id=entry["agent_id"],
                depends_on=frozenset(deps) if annotated else None,
                description=entry["description"],
            ))

        definition = WorkflowDefinition(
            workflow_id="PlannedWorkflow",
            name="Planned workflow",
            description=goal,
            steps=steps,
        )
        try:
            definition.validate()
        except WorkflowDefinitionError as e:
            # Cyclic plans fall back to running in the order given.
            console.print(f"[yellow]Ignoring planned dependencies: {e}[/yellow]")
            definition.steps = [replace(step, depends_on=None) for step in steps]
        return definition
