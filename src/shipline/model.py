# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Step:
    """
    A single unit of work inside a pipeline.

    Exactly one of `run` (shell command) or `uses` (named action) is set.
    `secrets` maps environment variable names to secret names, injected only
    for this step.
    """
    name: str
    run: str | None = None
    uses: str | None = None
    inputs: Dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    env: Dict[str, str] = field(default_factory=dict)
    secrets: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if (self.run is None) == (self.uses is None):
            raise ValueError(f"step {self.name!r} must set exactly one of run= or uses=")

    @property
    def kind(self) -> str:
        return "run" if self.run is not None else "uses"


def _branch_name(ref: str | None) -> str | None:
    if ref and ref.startswith("refs/heads/"):
        return ref[len("refs/heads/"):]
    return ref


@dataclass(frozen=True)
class Event:
    """What happened: `push` to `branch`."""
    name: str = "push"
    branch: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "branch", _branch_name(self.branch))


@dataclass(frozen=True)
class Trigger:
    event: str = "push"
    branches: List[str] = field(default_factory=lambda: ["main"])

    def matches(self, event: Event) -> bool:
        if event.name != self.event:
            return False
        if not self.branches:
            return True
        if event.branch is None:
            return False
        return any(fnmatch(event.branch, pattern) for pattern in self.branches)


@dataclass
class Pipeline:
    """An ordered list of steps plus the event predicate that starts it."""
    name: str
    steps: list[Step]
    trigger: Trigger = field(default_factory=Trigger)
    env: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError(f"pipeline {self.name!r} must have at least one step")


@dataclass
class StepResult:
    index: int
    name: str
    status: str  # ok|failed
    exit_code: int
    output: str = ""
    duration: float = 0.0


@dataclass
class RunResult:
    pipeline: str
    run_number: Optional[int]
    status: str  # ok|failed|skipped
    steps: list[StepResult] = field(default_factory=list)
    reason: str | None = None

    @property
    def failed_step(self) -> Optional[StepResult]:
        for r in self.steps:
            if r.status == "failed":
                return r
        return None

    @property
    def exit_code(self) -> int:
        failed = self.failed_step
        return failed.exit_code if failed else 0
