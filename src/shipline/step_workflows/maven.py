# step_workflows/maven.py
from __future__ import annotations

from ..model import Step


def maven_step(
    name: str = "Build with Maven",
    goals: str = "clean package",
    *,
    cwd: str | None = None,
    batch_mode: bool = False,
) -> Step:
    """`mvn <goals>` in cwd (relative to the workspace). The step fails with Maven's exit code."""
    cmd = "mvn -B" if batch_mode else "mvn"
    return Step(name=name, run=f"{cmd} {goals}".strip(), cwd=cwd)
