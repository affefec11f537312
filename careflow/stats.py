"""
Collaborator call statistics, counted per agent.
"""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class CollaboratorCallStats:
    total_calls: int = 0
    failed_calls: int = 0
    fallback_calls: int = 0
    calls_by_agent: Dict[str, int] = field(default_factory=dict)

    def record_call(self, agent_id: str = "unknown", failed: bool = False, fallback: bool = False):
        self.total_calls += 1
        self.calls_by_agent[agent_id] = self.calls_by_agent.get(agent_id, 0) + 1
        if failed:
            self.failed_calls += 1
        if fallback:
            self.fallback_calls += 1

    def reset(self):
        self.total_calls = 0
        self.failed_calls = 0
        self.fallback_calls = 0
        self.calls_by_agent.clear()

    def as_dict(self) -> dict:
        return {
            "calls": self.total_calls,
            "failed": self.failed_calls,
            "fallbacks": self.fallback_calls,
            "by agent": ", ".join(f"{k}: {v}" for k, v in self.calls_by_agent.items()) or "-",
        }

    def get_summary(self) -> str:
        lines = [
            "Collaborator calls:",
            f"  total: {self.total_calls}",
            f"  failed: {self.failed_calls}",
            f"  generic fallbacks: {self.fallback_calls}",
        ]
        if self.calls_by_agent:
            lines.append("  by agent:")
            for agent_id, count in self.calls_by_agent.items():
                lines.append(f"    {agent_id}: {count}")
        return "\n".join(lines)


_global_stats = CollaboratorCallStats()


def get_stats() -> CollaboratorCallStats:
    return _global_stats


def record_call(agent_id: str = "unknown", failed: bool = False, fallback: bool = False):
    _global_stats.record_call(agent_id, failed=failed, fallback=fallback)


def reset_stats():
    _global_stats.reset()
