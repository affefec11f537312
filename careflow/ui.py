"""
Terminal rendering for workflow runs, collaborations and statistics.
"""

from typing import Sequence

from rich.box import ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .orchestration.models import (
    AgentContribution,
    AgentExecutionResult,
    CollaborationResult,
    WorkflowDefinition,
    WorkflowRunResult,
)

console = Console()


class WorkflowUI:
    def print_banner(self):
        console.print(Panel(
            "[bold white]CareFlow[/bold white] [dim]- multi-agent healthcare workflow orchestration[/dim]",
            border_style="blue",
            box=ROUNDED,
        ))

    def print_phase(self, phase: str, description: str = ""):
        console.print()
        console.print(f"[bold blue]╭─ ▶ {phase} ─{'─' * max(4, 45 - len(phase))}[/bold blue]")
        if description:
            console.print(f"[bold blue]│[/bold blue] [dim]{description}[/dim]")
        console.print(f"[bold blue]╰──────────────────────────────────────────────────[/bold blue]")

    def print_agents(self, agents: Sequence[dict]):
        table = Table(title="Agents", box=ROUNDED)
        table.add_column("Id", style="cyan")
        table.add_column("Name")
        table.add_column("Handled steps", style="dim")
        for agent in agents:
            table.add_row(agent["id"], agent["name"], ", ".join(agent.get("steps", [])))
        console.print(table)

    def print_workflows(self, workflows: Sequence[WorkflowDefinition]):
        table = Table(title="Workflows", box=ROUNDED)
        table.add_column("Id", style="cyan")
        table.add_column("Steps")
        table.add_column("Mode", style="dim")
        for workflow in workflows:
            steps = ", ".join(
                step.name if step.required else f"{step.name}?" for step in workflow.steps
            )
            mode = "graph" if workflow.has_dependencies else "sequential"
            table.add_row(workflow.workflow_id, steps, mode)
        console.print(table)
        console.print("[dim]? marks optional steps[/dim]")

    def print_results(self, results: Sequence[AgentExecutionResult], title: str = "Results"):
        table = Table(title=title, box=ROUNDED)
        table.add_column("", width=2)
        table.add_column("Step", style="cyan")
        table.add_column("Agent", style="dim")
        table.add_column("Time", justify="right")
        table.add_column("Outcome")

        for result in results:
            if result.success:
                icon = Text("✓", style="green")
                outcome = ", ".join(sorted((result.output or {}).keys()))
            elif result.was_skipped:
                icon = Text("-", style="dim")
                outcome = f"[dim]{result.error}[/dim]"
            else:
                icon = Text("✗", style="red")
                outcome = f"[red]{result.error}[/red]"
            table.add_row(
                icon,
                result.step_name,
                result.agent_id or "",
                f"{result.duration.total_seconds():.2f}s",
                outcome,
            )
        console.print(table)

    def print_run_summary(self, run: WorkflowRunResult):
        status = "[green]succeeded[/green]" if run.success else "[red]failed[/red]"
        console.print(
            f"[bold]{run.workflow_type}[/bold] {status} in {run.duration.total_seconds():.2f}s "
            f"[dim]({run.workflow_id})[/dim]"
        )
        if run.failed_steps:
            console.print(f"[dim]Failed or skipped: {', '.join(run.failed_steps)}[/dim]")

    def print_contributions(self, contributions: Sequence[AgentContribution]):
        table = Table(title="Contributions", box=ROUNDED)
        table.add_column("Agent", style="cyan")
        table.add_column("Confidence", justify="right")
        table.add_column("Contribution")
        for c in contributions:
            text = c.contribution_text
            table.add_row(c.agent_id, f"{c.confidence_score:.2f}", text[:120] + ("..." if len(text) > 120 else ""))
        console.print(table)

    def print_collaboration(self, result: CollaborationResult):
        self.print_contributions(result.contributions)
        winner = f"{result.winner.agent_id}" if result.winner else "none"
        console.print(Panel(
            result.synthesized_output or "[dim]no synthesis[/dim]",
            title=f"Synthesis (confidence {result.confidence_score:.2f}, lead: {winner})",
            border_style="blue",
            box=ROUNDED,
        ))

    def print_error(self, error: str):
        console.print()
        console.print(f"[red]╭─ ✗ Error ─{'─' * 48}[/red]")
        for line in error.split("\n")[:10]:
            console.print(f"[red]│[/red] {line[:90]}")
        console.print(f"[red]╰──────────────────────────────────────────────────[/red]")

    def print_stats(self, stats_data: dict):
        console.print()
        console.print(f"[yellow]╭─ Statistics ─{'─' * 45}[/yellow]")
        for k, v in stats_data.items():
            console.print(f"[yellow]│[/yellow] [cyan]{k}:[/cyan] {v}")
        console.print(f"[yellow]╰──────────────────────────────────────────────────[/yellow]")


ui = WorkflowUI()
