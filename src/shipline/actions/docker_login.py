# actions/docker_login.py
from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..expressions import substitute_map

if TYPE_CHECKING:
    from ..model import Step
    from ..runner import StepContext


def login_command(username: str, registry: str | None = None) -> List[str]:
    # the password is fed on stdin so it never appears in argv or `ps`
    cmd = ["docker", "login"]
    if registry:
        cmd.append(registry)
    cmd.extend(["--username", username, "--password-stdin"])
    return cmd


def run_step(step: Step, ctx: StepContext) -> str:
    """
    Log in to a container registry.

    Inputs: username, password, registry (optional, Docker Hub when empty).
    """
    # Import here to avoid circular import
    from ..runner import CIError, StepFailure, hint_for_output, run_command

    inputs = substitute_map(step.inputs, ctx.expressions)
    username = inputs.get("username", "")
    password = inputs.get("password", "")
    if not username or not password:
        raise CIError(
            kind="missing_credentials",
            step=step.name,
            message="docker/login-action needs non-empty 'username' and 'password' inputs",
            details={"hint": "Provide the registry secrets, e.g. SHIPLINE_SECRET_DOCKER_USERNAME."},
        )

    cmd = login_command(username, inputs.get("registry") or None)
    proc = run_command(cmd, cwd=ctx.workspace, env=dict(ctx.base_env), stdin_data=password)

    output = ctx.tail(proc.stdout)
    if proc.returncode != 0:
        raise StepFailure(
            step=step.name,
            cmd=ctx.secrets.mask(" ".join(cmd)),
            exit_code=proc.returncode,
            output=output,
            hint=hint_for_output(output),
        )
    return output
