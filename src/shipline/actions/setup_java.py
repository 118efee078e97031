# actions/setup_java.py
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from ..expressions import substitute_map

if TYPE_CHECKING:
    from ..model import Step
    from ..runner import StepContext

_VERSION = re.compile(r'version "(\d+)(?:\.(\d+))?')


def java_major_version(text: str) -> Optional[int]:
    """
    Parse `java -version` output.

    'openjdk version "17.0.9" ...' -> 17
    'java version "1.8.0_392"'     -> 8
    """
    m = _VERSION.search(text or "")
    if not m:
        return None
    major = int(m.group(1))
    if major == 1 and m.group(2):
        return int(m.group(2))
    return major


def run_step(step: Step, ctx: StepContext) -> str:
    """Check that the JDK on PATH has the requested major version. Nothing is installed."""
    # Import here to avoid circular import
    from ..runner import TOOL_HINTS, StepFailure, run_command

    inputs = substitute_map(step.inputs, ctx.expressions)
    wanted = inputs.get("java-version", "").strip()
    distribution = inputs.get("distribution", "")

    proc = run_command(["java", "-version"], cwd=ctx.workspace, env=dict(ctx.base_env))
    output = ctx.tail(proc.stdout)
    if proc.returncode != 0:
        raise StepFailure(
            step=step.name,
            cmd="java -version",
            exit_code=proc.returncode,
            output=output,
            hint=TOOL_HINTS["java"],
        )

    found = java_major_version(output)
    if wanted:
        try:
            wanted_major = int(wanted.split(".")[0])
        except ValueError:
            raise StepFailure(
                step=step.name,
                cmd="java -version",
                exit_code=1,
                output=f"invalid java-version input: {wanted!r}\n",
            ) from None
        if found != wanted_major:
            raise StepFailure(
                step=step.name,
                cmd="java -version",
                exit_code=1,
                output=output + f"\nwanted Java {wanted_major}, found {found if found is not None else 'unknown'}\n",
                hint=TOOL_HINTS["java"],
            )

    dist = f" ({distribution} requested)" if distribution else ""
    return f"using Java {found}{dist}\n" + output
