"""
Main CLI entry point for CareFlow.
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.panel import Panel

from . import stats
from .config import Config, create_sample_config, get_config_path, load_config
from .exceptions import CareFlowError
from .orchestration import list_workflows
from .service import HealthcareAgentService
from .ui import ui

console = Console()

DEMO_INPUTS: dict[str, dict[str, Any]] = {
    "PatientAdmission": {
        "patientInfo": "Kari Nordmann, 54, known hypertension",
        "symptoms": "chest pain radiating to the left arm for 30 minutes, sweating",
        "vitalSigns": "BP 165/100, HR 110, SpO2 95%",
    },
    "AppointmentScheduling": {
        "patientInfo": "Ola Hansen, 32",
        "symptoms": "persistent dry cough for three weeks",
        "preferredTime": "weekday mornings",
    },
    "ClinicalDocumentation": {
        "patientInfo": "Ingrid Berg, 45",
        "consultationTranscript": (
            "Patient reports fever and headache for two days. Temperature 38.9. "
            "No neck stiffness. Advised rest, fluids and paracetamol."
        ),
    },
    "DischargeProcess": {
        "patientInfo": "Per Olsen, 67, admitted with community-acquired pneumonia",
        "treatment": "IV antibiotics for 3 days, switched to oral amoxicillin",
    },
    "EmergencyTriage": {
        "patientInfo": "Unknown male, approx. 40",
        "symptoms": "sudden slurred speech and weakness in the right arm",
        "vitalSigns": "BP 190/110, HR 88",
    },
}


def show_config(config: Config):
    llm = config.llm
    config_text = f"""
[bold]Configuration:[/bold]
  Config file: [cyan]{get_config_path()}[/cyan]
  Provider: [cyan]{llm.provider}[/cyan]
  Model: [cyan]{llm.model_name or 'not configured'}[/cyan]
  Base URL: [cyan]{llm.base_url or 'default'}[/cyan]
  Step timeout: [cyan]{config.step_timeout}[/cyan]
  Max concurrency: [cyan]{config.max_concurrency}[/cyan]
  Stop on first failure: [cyan]{config.stop_on_first_failure}[/cyan]
"""
    if config.step_sampling:
        config_text += "\n[bold]Step sampling overrides:[/bold]\n"
        for step_name in config.step_sampling:
            sampling = config.sampling_for_step(step_name)
            config_text += f"  {step_name}: temperature={sampling.temperature} max_tokens={sampling.max_output_tokens}\n"
    else:
        config_text += "\n  Sampling: [cyan]agent defaults[/cyan]\n"

    console.print(Panel(config_text, title="CareFlow", border_style="cyan"))


def read_input(path: Optional[str]) -> dict[str, Any]:
    if not path:
        return {}
    with open(Path(path).expanduser(), "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise CareFlowError("input file must contain a JSON object", path=path)
    return data


async def run_workflow(service: HealthcareAgentService, workflow_id: str, input_context: dict[str, Any]):
    ui.print_phase(workflow_id, ", ".join(f"{k}={v}" for k, v in input_context.items())[:200])
    try:
        results = await service.run_workflow(workflow_id, input_context)
        ui.print_results(results, title=workflow_id)
        if service.last_run is not None:
            ui.print_run_summary(service.last_run)
    finally:
        await service.aclose()


async def run_goal(service: HealthcareAgentService, goal: str, input_context: dict[str, Any]):
    ui.print_phase("Planning", goal)
    try:
        definition = await service.plan(goal, input_context)
        if definition is None:
            ui.print_error("The planner produced no runnable steps")
            return
        ui.print_workflows([definition])
        ui.print_phase("Execution")
        results = await service.run_definition(definition, input_context)
        ui.print_results(results, title="Planned workflow")
        if service.last_run is not None:
            ui.print_run_summary(service.last_run)
    finally:
        await service.aclose()


async def run_collaboration(service: HealthcareAgentService, goal: str, agent_ids: list[str]):
    ui.print_phase("Collaboration", goal)
    try:
        result = await service.coordinate(goal, agent_ids or None)
        ui.print_collaboration(result)
    finally:
        await service.aclose()


def main():
    parser = argparse.ArgumentParser(description="CareFlow - multi-agent healthcare workflow orchestration")
    parser.add_argument("--init", action="store_true", help="Create a sample configuration file")
    parser.add_argument("--config", "-c", action="store_true", help="Show current configuration")
    parser.add_argument("--agents", action="store_true", help="List registered agents")
    parser.add_argument("--workflows", action="store_true", help="List built-in workflows")
    parser.add_argument("--workflow", "-w", type=str, help="Run a built-in workflow by id")
    parser.add_argument("--input", "-i", type=str, help="JSON file with the workflow input context")
    parser.add_argument("--demo", action="store_true", help="Use the bundled demo input for the workflow")
    parser.add_argument("--goal", "-g", type=str, help="Goal for collaboration or planning")
    parser.add_argument(
        "--collaborate",
        type=str,
        nargs="?",
        const="",
        help="Comma-separated agent ids to collaborate on the goal (all agents when empty)",
    )
    parser.add_argument("--plan", action="store_true", help="Plan a workflow for the goal and run it")
    parser.add_argument("--stop-on-failure", action="store_true", help="Abort the run after the first failed required step")
    parser.add_argument("--timeout", type=float, help="Per-step timeout in seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print step-level progress")

    args = parser.parse_args()

    if args.init:
        path = create_sample_config()
        console.print(f"[green]Created sample configuration at {path}[/green]")
        console.print("[dim]Edit it to add your API key and model.[/dim]")
        return

    if args.workflows:
        ui.print_workflows(list_workflows())
        return

    try:
        config = load_config()
    except CareFlowError as e:
        ui.print_error(str(e))
        return

    if args.stop_on_failure:
        config.stop_on_first_failure = True
    if args.timeout:
        config.step_timeout = args.timeout
    if args.verbose:
        config.verbose = True

    if args.config:
        show_config(config)
        return

    if not (args.agents or args.workflow or args.goal):
        parser.print_help()
        return

    if not config.llm.is_configured:
        console.print("[red]No language model configured.[/red]")
        console.print("[dim]Run careflow --init and edit the configuration, or set CAREFLOW_API_KEY and CAREFLOW_MODEL.[/dim]")
        return

    ui.print_banner()

    try:
        service = HealthcareAgentService(config)

        if args.agents:
            ui.print_agents(service.list_agents())
            return

        if args.demo and args.workflow:
            input_context = dict(DEMO_INPUTS.get(args.workflow, {}))
        else:
            input_context = read_input(args.input)

        if args.workflow:
            asyncio.run(run_workflow(service, args.workflow, input_context))
        elif args.plan:
            asyncio.run(run_goal(service, args.goal, input_context))
        else:
            agent_ids = [a.strip() for a in (args.collaborate or "").split(",") if a.strip()]
            asyncio.run(run_collaboration(service, args.goal, agent_ids))
    except CareFlowError as e:
        ui.print_error(str(e))
        return
    except (OSError, json.JSONDecodeError) as e:
        ui.print_error(f"Could not read input: {e}")
        return

    ui.print_stats(stats.get_stats().as_dict())


if __name__ == "__main__":
    main()
