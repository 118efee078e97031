# actions/checkout.py
from __future__ import annotations

from typing import TYPE_CHECKING

from ..expressions import substitute_map

if TYPE_CHECKING:
    from ..model import Step
    from ..runner import StepContext


def run_step(step: Step, ctx: StepContext) -> str:
    """
    Make sure the workspace holds the repository.

    Inputs:
      repository: clone URL, used only when the workspace is not inside a git work tree
      ref:        branch, tag or commit to check out after cloning

    A workspace inside an existing work tree (the repository root or any
    directory below it) is left untouched; its HEAD is reported.
    """
    # Import here to avoid circular import
    from ..runner import StepFailure, hint_for_output, run_command

    inputs = substitute_map(step.inputs, ctx.expressions)
    env = dict(ctx.base_env)

    if _inside_work_tree(ctx, env):
        proc = run_command(["git", "rev-parse", "HEAD"], cwd=ctx.workspace, env=env)
        if proc.returncode != 0:
            output = ctx.tail(proc.stdout)
            raise StepFailure(
                step=step.name,
                cmd="git rev-parse HEAD",
                exit_code=proc.returncode,
                output=output,
                hint=hint_for_output(output),
            )
        return f"workspace already checked out at {proc.stdout.strip()}\n"

    repository = inputs.get("repository")
    if not repository:
        raise StepFailure(
            step=step.name,
            cmd="checkout",
            exit_code=1,
            output=f"{ctx.workspace} is not a git checkout and no 'repository' input was given\n",
        )

    if any(ctx.workspace.iterdir()):
        raise StepFailure(
            step=step.name,
            cmd=f"git clone {ctx.secrets.mask(repository)}",
            exit_code=1,
            output=f"refusing to clone into non-empty directory {ctx.workspace}\n",
        )

    outputs = []
    commands = [["git", "clone", repository, "."]]
    ref = inputs.get("ref")
    if ref:
        commands.append(["git", "checkout", ref])

    for cmd in commands:
        proc = run_command(cmd, cwd=ctx.workspace, env=env)
        outputs.append(proc.stdout or "")
        if proc.returncode != 0:
            output = ctx.tail("".join(outputs))
            raise StepFailure(
                step=step.name,
                cmd=ctx.secrets.mask(" ".join(cmd)),
                exit_code=proc.returncode,
                output=output,
                hint=hint_for_output(output),
            )
    return ctx.tail("".join(outputs))


def _inside_work_tree(ctx: StepContext, env: dict) -> bool:
    from ..runner import run_command

    proc = run_command(["git", "rev-parse", "--is-inside-work-tree"], cwd=ctx.workspace, env=env)
    return proc.returncode == 0 and proc.stdout.strip() == "true"
