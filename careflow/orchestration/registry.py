"""
Agent capability interface and registry.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, Optional

from .models import AgentContext, AgentContribution, AgentExecutionResult, AgentWorkspace, WorkflowStep


class Agent(ABC):
    agent_id: str
    name: str
    capability: str

    @abstractmethod
    async def execute(self, step: WorkflowStep, context: AgentContext) -> AgentExecutionResult:
        pass

    @abstractmethod
    async def contribute_to_collaboration(self, goal: str, workspace: AgentWorkspace) -> AgentContribution:
        pass

    def handled_steps(self) -> list[str]:
        return []


class AgentRegistry:
    def __init__(self, agents: Iterable[Agent] = ()):
        self._agents: dict[str, Agent] = {}
        for agent in agents:
            self.register(agent)

    def register(self, agent: Agent) -> None:
        self._agents[agent.agent_id] = agent

    def get(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def list_agents(self) -> list[str]:
        return list(self._agents.keys())

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "id": agent.agent_id,
                "name": agent.name,
                "capability": agent.capability,
                "steps": agent.handled_steps(),
            }
            for agent in self._agents.values()
        ]

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents.values())

    def __len__(self) -> int:
        return len(self._agents)
