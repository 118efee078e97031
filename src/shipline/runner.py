# runner.py
from __future__ import annotations

import os
import re
import runpy
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from . import settings
from .expressions import ExpressionContext, ExpressionError, substitute, substitute_map
from .model import Event, Pipeline, RunResult, Step, StepResult
from .secrets import SecretStore
from .state import RunCounter, RunLock, RunLockHeld
from .ui.console import Console, get_console


@dataclass
class CIError(Exception):
    """
    Structured CI error with enough context for:
      - clean CLI output
      - debugging without full tracebacks
    """
    kind: str
    step: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


@dataclass
class StepFailure(Exception):
    step: str
    cmd: str
    exit_code: int
    output: str = ""
    hint: str | None = None

    def __str__(self) -> str:
        return f"step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


TOOL_HINTS = {
    "mvn": "Install Apache Maven or fix PATH (mvn).",
    "java": "Install a JDK (e.g. Temurin 17) or fix PATH.",
    "docker": "Install Docker and ensure the daemon is running.",
    "trivy": "Install Trivy (see the 'Install Trivy' step) or fix PATH.",
    "git": "Install Git or fix PATH.",
    "sudo": "Run on a host with sudo, or install the tool beforehand.",
}

_NOT_FOUND = re.compile(r"([\w.+-]+): (?:command )?not found")


def hint_for_output(output: str) -> str | None:
    m = _NOT_FOUND.search(output or "")
    if not m:
        return None
    tool = m.group(1)
    return TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")


# ----------------------------------------------------------------------
# Workflow loading (local file)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> Pipeline:
    """
    Load a pipeline from a workflow file.

    A .py file must define either:
      - workflow() -> Pipeline (or a list of Steps)
      - PIPELINE = Pipeline(...)

    A .yml/.yaml file is read as a GitHub-Actions-style workflow.
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")

    if wf_path.suffix in (".yml", ".yaml"):
        from .workflow_yaml import load_yaml_workflow
        return load_yaml_workflow(wf_path)

    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py, .yml or .yaml file, got: {wf_path.name}")

    module_name = f"shipline_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    result = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        result = globals_dict["workflow"]()
    elif "PIPELINE" in globals_dict:
        result = globals_dict["PIPELINE"]

    if isinstance(result, list) and result and all(isinstance(s, Step) for s in result):
        result = Pipeline(name=wf_path.stem, steps=result)

    if not isinstance(result, Pipeline):
        raise TypeError(
            "Workflow must return/define a Pipeline. "
            "Define workflow() -> Pipeline or PIPELINE = pipeline(...)."
        )
    return result


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

@dataclass
class StepContext:
    """Everything a step needs at invocation time; shared read-only across the run."""
    workspace: Path
    secrets: SecretStore
    expressions: ExpressionContext
    base_env: Dict[str, str]
    console: Console
    shell: str = settings.SHELL
    output_tail: int = settings.OUTPUT_TAIL

    def tail(self, output: str) -> str:
        masked = self.secrets.mask(output or "")
        return masked[-self.output_tail:] if self.output_tail > 0 else masked


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path,
    env: Dict[str, str],
    stdin_data: str | None = None,
) -> subprocess.CompletedProcess:
    """
    Run cmd, capturing stdout and stderr as one stream.

    Output that is not valid UTF-8 is decoded with replacement characters. A
    missing binary exits 127; a process killed by signal N exits 128 + N.
    """
    try:
        proc = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            env=env,
            input=stdin_data,
            encoding="utf-8",
            errors="replace",
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except FileNotFoundError:
        return subprocess.CompletedProcess(list(cmd), 127, f"{cmd[0]}: command not found\n")
    if proc.returncode < 0:
        proc.returncode = 128 - proc.returncode
    return proc


def step_cwd(step: Step, ctx: StepContext) -> Path:
    cwd = (ctx.workspace / (step.cwd or ".")).resolve()
    if not cwd.is_dir():
        raise StepFailure(
            step=step.name,
            cmd=f"cd {step.cwd}",
            exit_code=1,
            output=f"working directory not found: {cwd}\n",
        )
    return cwd


def step_env(step: Step, ctx: StepContext) -> Dict[str, str]:
    env = dict(ctx.base_env)
    env.update(substitute_map(step.env, ctx.expressions))
    for env_name, secret_name in step.secrets.items():
        env[env_name] = ctx.expressions.lookup(f"secrets.{secret_name}")
    return env


def _run_shell_step(step: Step, ctx: StepContext) -> str:
    script = substitute(step.run or "", ctx.expressions)
    cwd = step_cwd(step, ctx)
    env = step_env(step, ctx)

    ctx.console.print_command(script)
    proc = run_command([ctx.shell, "-e", "-c", script], cwd=cwd, env=env)

    output = ctx.tail(proc.stdout)
    if proc.returncode != 0:
        raise StepFailure(
            step=step.name,
            cmd=ctx.secrets.mask(script),
            exit_code=proc.returncode,
            output=output,
            hint=hint_for_output(output) if proc.returncode == 127 else None,
        )
    return output


def _run_step(step: Step, ctx: StepContext) -> str:
    """Run one step. Returns its masked output; raises StepFailure on any failure."""
    try:
        if step.kind == "run":
            return _run_shell_step(step, ctx)

        from .actions import run_action
        return run_action(step, ctx)

    except ExpressionError as e:
        raise StepFailure(step=step.name, cmd=step.run or step.uses or "", exit_code=1, output=f"{e}\n") from e
    except CIError as e:
        raise StepFailure(
            step=step.name,
            cmd=step.uses or step.run or "",
            exit_code=1,
            output=ctx.secrets.mask(f"{e.message}\n"),
            hint=e.details.get("hint"),
        ) from e


def _base_env(pipeline: Pipeline, run_number: int, expressions: ExpressionContext) -> Dict[str, str]:
    env = os.environ.copy()
    # secrets reach a step only through placeholders or its own `secrets` map
    for key in list(env):
        if (settings.SECRET_PREFIX and key.startswith(settings.SECRET_PREFIX)) or key in expressions.secrets:
            del env[key]
    env.update(
        {
            "CI": "true",
            "SHIPLINE_RUN_NUMBER": str(run_number),
            "GITHUB_RUN_NUMBER": str(run_number),
        }
    )
    env.update(substitute_map(pipeline.env, expressions))
    return env


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_pipeline(
    pipeline: Pipeline,
    event: Event,
    *,
    workspace: str | Path = ".",
    secrets: Optional[SecretStore] = None,
    run_number: Optional[int] = None,
    state_dir: str | Path = settings.STATE_DIR,
    shell: str = settings.SHELL,
    output_tail: int = settings.OUTPUT_TAIL,
    workflow_name: str | None = None,
    console: Optional[Console] = None,
) -> RunResult:
    """
    Execute the pipeline's steps in order if `event` matches its trigger.

    The first failing step ends the run; nothing after it executes. The
    returned RunResult carries that step's exit code.
    """
    console = console or get_console()
    secrets = secrets if secrets is not None else SecretStore()
    console.use_secrets(secrets)

    trigger = pipeline.trigger
    if not trigger.matches(event):
        reason = (
            f"event '{event.name}' on branch '{event.branch or '<none>'}' does not match "
            f"trigger '{trigger.event}' on {trigger.branches}"
        )
        console.print_run_skipped(pipeline.name, reason)
        return RunResult(pipeline=pipeline.name, run_number=None, status="skipped", reason=reason)

    workspace_p = Path(workspace).resolve()
    if not workspace_p.is_dir():
        raise CIError(
            kind="workspace_missing",
            step=None,
            message=f"Workspace directory not found: {workspace_p}",
        )

    lock = RunLock(state_dir)
    try:
        lock.acquire()
    except RunLockHeld as e:
        raise CIError(
            kind="run_in_progress",
            step=None,
            message=str(e),
            details={"lock": str(e.path), "hint": "Wait for the other run to finish or remove a stale lock file."},
        ) from e

    try:
        counter = RunCounter(state_dir)
        if run_number is None:
            run_number = counter.next()
        else:
            counter.observe(run_number)

        expressions = ExpressionContext(
            secrets=secrets,
            run_number=run_number,
            event_name=event.name,
            branch=event.branch,
            workspace=str(workspace_p),
            on_missing_secret=lambda name: console.print_warning(
                f"secret '{name}' is not defined; using an empty value"
            ),
        )
        base_env = _base_env(pipeline, run_number, expressions)
        expressions.env = base_env

        ctx = StepContext(
            workspace=workspace_p,
            secrets=secrets,
            expressions=expressions,
            base_env=base_env,
            console=console,
            shell=shell,
            output_tail=output_tail,
        )

        console.print_run_started(
            pipeline=pipeline.name,
            workflow=workflow_name or pipeline.name,
            run_number=run_number,
            step_count=len(pipeline.steps),
        )

        result = RunResult(pipeline=pipeline.name, run_number=run_number, status="ok")
        total = len(pipeline.steps)

        for index, step in enumerate(pipeline.steps, 1):
            console.print_step(index, total, step.name)
            started = time.monotonic()
            try:
                output = _run_step(step, ctx)
            except StepFailure as f:
                duration = time.monotonic() - started
                result.steps.append(
                    StepResult(index, step.name, "failed", f.exit_code, f.output, duration)
                )
                result.status = "failed"
                result.reason = str(f)
                console.print_failure(
                    step.name,
                    str(f),
                    exit_code=f.exit_code,
                    hint=f.hint,
                    output=f.output,
                )
                break

            duration = time.monotonic() - started
            result.steps.append(StepResult(index, step.name, "ok", 0, output, duration))
            console.print_output(output)
            console.print_success(step.name, duration)

        console.print_results(result)
        return result
    finally:
        lock.release()


def plan(pipeline: Pipeline, event: Event) -> List[Step]:
    """Steps that a run for `event` would execute, in order (empty if the trigger does not match)."""
    if not pipeline.trigger.matches(event):
        return []
    return list(pipeline.steps)
