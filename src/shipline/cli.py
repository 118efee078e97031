# cli.py
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import click

from . import settings
from .git_facts.git import current_branch, head_sha, is_dirty
from .model import Event, Pipeline
from .runner import CIError, load_workflow, plan, run_pipeline
from .secrets import SecretStore
from .state import RunCounter
from .ui.console import Console, get_console, set_console

DEFAULT_WORKFLOW = "shipline_workflow.py"


def find_workflow_files(root: Path) -> list[Path]:
    """
    Find all workflow files under root.

    Returns:
        List of Path objects for workflow files
    """
    workflow_files = []

    default_workflow = root / DEFAULT_WORKFLOW
    if default_workflow.exists():
        workflow_files.append(default_workflow)

    for path in root.glob("*_workflow.py"):
        if path != default_workflow:
            workflow_files.append(path)

    gh_dir = root / ".github" / "workflows"
    if gh_dir.is_dir():
        workflow_files.extend(gh_dir.glob("*.yml"))
        workflow_files.extend(gh_dir.glob("*.yaml"))

    return sorted(workflow_files)


def discover_workflow(workflow_arg: str | None, root: Path) -> Path:
    """
    Discover workflow file from argument or default.

    Raises:
        SystemExit: If workflow cannot be found or multiple workflows exist
    """
    console = get_console()

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix == "":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or specify a different path:\n  shipline run --workflow my_workflow.py",
            )
            sys.exit(1)
        return workflow_path

    workflow_files = find_workflow_files(root)

    if len(workflow_files) == 0:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=[
                "Looked for:",
                f"  {DEFAULT_WORKFLOW}",
                "  *_workflow.py",
                "  .github/workflows/*.yml",
            ],
            suggestion=f"Create a workflow file:\n  {DEFAULT_WORKFLOW}\n\nOr specify a workflow explicitly:\n  shipline run --workflow my_workflow.py",
        )
        sys.exit(1)

    if len(workflow_files) > 1:
        file_list = "\n".join(f"  {f}" for f in workflow_files)
        console.print_error(
            "Multiple workflow files found",
            "Found multiple workflow files. Please specify which one to use:",
            details=[file_list],
            suggestion=f"Specify a workflow explicitly:\n  shipline run --workflow {DEFAULT_WORKFLOW}",
        )
        sys.exit(1)

    return workflow_files[0]


def resolve_event(event: str, branch: str | None, workspace: Path) -> Event:
    """Build the trigger event; the branch defaults to the workspace's checked-out branch."""
    console = get_console()
    if branch is None:
        try:
            branch = current_branch(workspace)
        except (subprocess.CalledProcessError, FileNotFoundError):
            console.print_debug(f"Could not determine git branch in {workspace}")
            branch = None
        if branch:
            console.print_debug(f"Using git branch: {branch}")
    return Event(name=event, branch=branch)


def collect_secrets(names: tuple[str, ...], secrets_file: str | None) -> SecretStore:
    store = SecretStore.from_environ(names)
    if secrets_file:
        store = store.merged(SecretStore.from_file(secrets_file))
    return store


def load_or_exit(ctx, workflow: str | None, workspace: Path) -> tuple[Path, Pipeline]:
    console = get_console()
    workflow_path = discover_workflow(workflow, workspace)
    try:
        return workflow_path, load_workflow(workflow_path)
    except Exception as e:
        console.print_error(
            "Failed to load workflow",
            f"Could not load workflow from {workflow_path}",
            details=[str(e)],
        )
        if ctx.obj.get("debug", False):
            console.print_exception(e)
        sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show commands, stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """shipline: run a linear build, scan and push pipeline, stopping at the first failure."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


workflow_option = click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (.py or .yml; defaults to {DEFAULT_WORKFLOW} if present)",
)
workspace_option = click.option(
    "--workspace",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory the steps run in",
)
event_option = click.option("--event", default="push", show_default=True, help="Triggering event name")
branch_option = click.option("--branch", default=None, help="Branch the event happened on (defaults to the current git branch)")


@cli.command()
@workflow_option
@workspace_option
@event_option
@branch_option
@click.option(
    "--run-number",
    default=None,
    type=click.IntRange(min=1),
    envvar="GITHUB_RUN_NUMBER",
    help="Use this run number instead of allocating the next one",
)
@click.option("--state-dir", default=settings.STATE_DIR, show_default=True, help="Run counter and lock directory")
@click.option("--secret", "secret_names", multiple=True, help="Expose environment variable NAME as secret NAME (repeatable)")
@click.option("--secrets-file", default=None, type=click.Path(exists=True, dir_okay=False), help="File of NAME=VALUE secret lines")
@click.option("--shell", default=settings.SHELL, show_default=True, help="Shell used for run: steps")
@click.pass_context
def run(ctx, workflow, workspace, event, branch, run_number, state_dir, secret_names, secrets_file, shell):
    """Run a pipeline for one trigger event."""
    console = get_console()

    workflow_path, pipeline = load_or_exit(ctx, workflow, workspace)

    try:
        secrets = collect_secrets(secret_names, secrets_file)
    except (KeyError, ValueError) as e:
        console.print_error("Invalid secrets", str(e).strip("'\""))
        sys.exit(1)

    trigger_event = resolve_event(event, branch, workspace)

    try:
        console.print_debug(f"Commit: {head_sha(workspace)}")
        if is_dirty(workspace):
            console.print_warning("workspace has uncommitted changes")
    except (subprocess.CalledProcessError, FileNotFoundError):
        console.print_debug("Workspace is not a git checkout")

    try:
        result = run_pipeline(
            pipeline,
            trigger_event,
            workspace=workspace,
            secrets=secrets,
            run_number=run_number,
            state_dir=state_dir,
            shell=shell,
            workflow_name=workflow_path.name,
            console=console,
        )
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except CIError as e:
        console.print_error(
            e.kind.replace("_", " ").capitalize(),
            e.message,
            suggestion=e.details.get("hint"),
        )
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    sys.exit(result.exit_code)


@cli.command("plan")
@workflow_option
@workspace_option
@event_option
@branch_option
@click.pass_context
def plan_cmd(ctx, workflow, workspace, event, branch):
    """Show which steps a run for this event would execute."""
    console = get_console()

    workflow_path, pipeline = load_or_exit(ctx, workflow, workspace)
    trigger_event = resolve_event(event, branch, workspace)

    console.print_header(f"PLAN: {pipeline.name} ({workflow_path.name})")
    console.print_info(
        f"Trigger: {pipeline.trigger.event} on {', '.join(pipeline.trigger.branches) or 'any branch'}"
    )
    console.print_info(f"Event: {trigger_event.name} on {trigger_event.branch or '<unknown branch>'}")

    steps = plan(pipeline, trigger_event)
    if not steps:
        console.print_info("No steps would run: the event does not match the trigger.")
        return

    for index, step in enumerate(steps, 1):
        detail = f"run: {(step.run.splitlines() or [''])[0]}" if step.kind == "run" else f"uses: {step.uses}"
        if step.cwd:
            detail += f", in {step.cwd}"
        console.print_plan_step(index, step.name, detail)


@cli.command("next-run")
@click.option("--state-dir", default=settings.STATE_DIR, show_default=True, help="Run counter and lock directory")
def next_run(state_dir):
    """Print the run number the next run will get."""
    get_console().print_info(str(RunCounter(state_dir).current() + 1))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
