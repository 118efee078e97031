# src/shipline/dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from .model import Pipeline, Step, Trigger


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(
    name: str,
    cmd: str,
    *,
    cwd: str | None = None,
    env: Optional[Dict[str, str]] = None,
    secrets: Optional[Dict[str, str]] = None,
) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd, env=env or {}, secrets=secrets or {})


def uses(name: str, action: str, *, cwd: str | None = None, **inputs: str) -> Step:
    """
    Create a step that invokes a named action.

    Input names with dashes can be passed through a dict:
        uses("Set up JDK 17", "actions/setup-java@v2", **{"java-version": "17"})
    """
    return Step(name=name, uses=action, inputs={k: str(v) for k, v in inputs.items()}, cwd=cwd)


# ---------------------------------------------------------------------
# Functional pipeline helper
# ---------------------------------------------------------------------

def pipeline(
    name: str,
    *steps: Step,  # allow: pipeline("x", sh(...), sh(...))
    steps_list: Optional[List[Step]] = None,
    on: str = "push",
    branches: Optional[List[str]] = None,
    env: Optional[Dict[str, str]] = None,
    cwd: str | None = None,  # default cwd applied to steps missing cwd
) -> Pipeline:
    steps_final: List[Step] = []
    if steps_list:
        steps_final.extend(steps_list)
    steps_final.extend(steps)

    if not steps_final:
        raise ValueError(f"pipeline({name!r}) must have at least one step")

    if cwd is not None:
        steps_final = [s if s.cwd is not None else replace(s, cwd=cwd) for s in steps_final]

    return Pipeline(
        name=name,
        steps=steps_final,
        trigger=Trigger(event=on, branches=list(branches) if branches is not None else ["main"]),
        env=env or {},
    )


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class PipelineBuilder:
    def __init__(self, name: str):
        self.name = name
        self._steps: list[Step] = []
        self._event = "push"
        self._branches: list[str] = ["main"]
        self._env: dict[str, str] = {}

    def on(self, event: str, *branches: str):
        self._event = event
        if branches:
            self._branches = list(branches)
        return self

    def define_step(self, name: str, run: str, cwd: str | None = None, **secrets: str):
        self._steps.append(Step(name=name, run=run, cwd=cwd, secrets=dict(secrets)))
        return self

    def use_action(self, name: str, action: str, inputs: Optional[Dict[str, str]] = None):
        self._steps.append(Step(name=name, uses=action, inputs=dict(inputs or {})))
        return self

    def add(self, *steps: Step):
        self._steps.extend(steps)
        return self

    def with_env(self, **env):
        # force values to str for env compatibility
        self._env.update({k: str(v) for k, v in env.items()})
        return self

    def build(self) -> Pipeline:
        if not self._steps:
            raise ValueError(f"Pipeline '{self.name}' has no steps")
        return Pipeline(
            name=self.name,
            steps=list(self._steps),
            trigger=Trigger(event=self._event, branches=list(self._branches)),
            env=dict(self._env),
        )


def build(name: str) -> PipelineBuilder:
    """Convenience: build('deploy').define_step(...).build()"""
    return PipelineBuilder(name)
