"""
Multi-agent collaboration on a shared workspace.

Every agent reads the same snapshot of the workspace; contributions are
appended afterwards in the order the caller listed the agents, so the
workspace never depends on which agent answered first.
"""

import asyncio
from typing import Optional, Sequence

from rich.console import Console

from ..clients import BaseClient, CompletionRequest, SamplingParams
from ..exceptions import CareFlowError
from .models import AgentContribution, AgentWorkspace, CollaborationResult
from .registry import AgentRegistry

console = Console()

SYNTHESIS_SAMPLING = SamplingParams(temperature=0.2, max_output_tokens=2000)

SYNTHESIS_SYSTEM = (
    "You coordinate a team of healthcare assistants. Merge their contributions into one "
    "coherent, actionable plan for the goal. Resolve conflicts in favour of the more "
    "confident contributor and keep clinical safety first."
)


def rank_contributions(contributions: Sequence[AgentContribution]) -> list[AgentContribution]:
    """Highest confidence first; equal confidence keeps insertion order."""
    return sorted(contributions, key=lambda c: -c.confidence_score)


def select_winner(contributions: Sequence[AgentContribution]) -> Optional[AgentContribution]:
    ranked = rank_contributions(contributions)
    return ranked[0] if ranked else None


class AgentCollaboration:
    def __init__(
        self,
        registry: AgentRegistry,
        client: Optional[BaseClient] = None,
        verbose: bool = True,
    ):
        self.registry = registry
        self.client = client
        self.verbose = verbose

    async def contribute(
        self,
        goal: str,
        agent_ids: Sequence[str],
        workspace: Optional[AgentWorkspace] = None,
    ) -> list[AgentContribution]:
        """Gather one contribution per resolvable agent and append them to the workspace."""
        if workspace is None:
            workspace = AgentWorkspace(goal=goal)

        participants = []
        for agent_id in agent_ids:
            agent = self.registry.get(agent_id)
            if agent is None:
                console.print(f"[yellow]Skipping unknown agent: {agent_id}[/yellow]")
                continue
            participants.append(agent)

        if not participants:
            return []

        snapshot = workspace.snapshot()
        outcomes = await asyncio.gather(
            *(agent.contribute_to_collaboration(goal, snapshot) for agent in participants),
            return_exceptions=True,
        )

        contributions = []
        for agent, outcome in zip(participants, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                console.print(f"[red]{agent.agent_id} could not contribute: {outcome}[/red]")
                outcome = AgentContribution(
                    agent_id=agent.agent_id,
                    contribution_text=f"error: {outcome}",
                    confidence_score=0.0,
                )
            elif self.verbose:
                console.print(
                    f"[dim]{outcome.agent_id} contributed (confidence {outcome.confidence_score:.2f})[/dim]"
                )
            contributions.append(outcome)

        workspace.extend(contributions)
        return contributions

    async def synthesize(self, goal: str, contributions: Sequence[AgentContribution]) -> CollaborationResult:
        if self.client is None:
            raise CareFlowError("synthesis needs a language-model client")

        if not contributions:
            return CollaborationResult(
                goal=goal,
                synthesized_output="",
                contribution_count=0,
                confidence_score=0.0,
            )

        winner = select_winner(contributions)
        confidence = sum(c.confidence_score for c in contributions) / len(contributions)

        listing = "\n\n".join(
            f"{c.agent_id} (confidence {c.confidence_score:.2f}):\n{c.contribution_text}"
            for c in rank_contributions(contributions)
        )
        request = CompletionRequest(
            system_instruction=SYNTHESIS_SYSTEM,
            user_instruction=f"Goal: {goal}\n\nContributions:\n{listing}",
            sampling=SYNTHESIS_SAMPLING,
        )
        response = await self.client.complete(request)

        return CollaborationResult(
            goal=goal,
            synthesized_output=response.text,
            contribution_count=len(contributions),
            confidence_score=confidence,
            contributions=list(contributions),
            winner=winner,
        )

    async def coordinate(self, goal: str, agent_ids: Sequence[str]) -> CollaborationResult:
        workspace = AgentWorkspace(goal=goal)
        contributions = await self.contribute(goal, agent_ids, workspace)
        return await self.synthesize(goal, contributions)
