# workflow_yaml.py
# Reads a GitHub-Actions-style workflow file with a single linear job.
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from .model import Pipeline, Step, Trigger


def _str_map(value: Any, where: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{where}: expected a mapping, got {type(value).__name__}")
    return {str(k): _scalar(v) for k, v in value.items()}


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _trigger(data: Dict[Any, Any]) -> Trigger:
    # PyYAML (YAML 1.1) reads a bare `on:` key as the boolean True
    on = data.get("on", data.get(True))
    if on is None:
        return Trigger()
    if isinstance(on, str):
        return Trigger(event=on, branches=[])
    if isinstance(on, list):
        if len(on) != 1:
            raise ValueError(f"exactly one trigger event is supported, got {on}")
        return Trigger(event=str(on[0]), branches=[])
    if isinstance(on, dict):
        if len(on) != 1:
            raise ValueError(f"exactly one trigger event is supported, got {sorted(map(str, on))}")
        event, cfg = next(iter(on.items()))
        branches = (cfg or {}).get("branches") or []
        if isinstance(branches, str):
            branches = [branches]
        return Trigger(event=str(event), branches=[str(b) for b in branches])
    raise ValueError(f"unsupported 'on' value: {on!r}")


def _step(raw: Dict[str, Any], index: int) -> Step:
    where = f"steps[{index}]"
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: expected a mapping")
    run = raw.get("run")
    action = raw.get("uses")
    name = raw.get("name") or (action if action else (str(run).splitlines()[0] if run else f"step {index + 1}"))
    return Step(
        name=str(name),
        run=None if run is None else str(run).rstrip("\n"),
        uses=None if action is None else str(action),
        inputs=_str_map(raw.get("with"), f"{where}.with"),
        cwd=raw.get("working-directory"),
        env=_str_map(raw.get("env"), f"{where}.env"),
    )


def parse_workflow(data: Dict[Any, Any], default_name: str = "workflow") -> Pipeline:
    if not isinstance(data, dict):
        raise ValueError("workflow file must contain a mapping at the top level")

    jobs = data.get("jobs") or {}
    if not isinstance(jobs, dict) or not jobs:
        raise ValueError("workflow defines no jobs")
    if len(jobs) > 1:
        raise ValueError(f"only a single linear job is supported, found: {sorted(jobs)}")

    job_id, job = next(iter(jobs.items()))
    raw_steps: List[Any] = (job or {}).get("steps") or []

    env = _str_map(data.get("env"), "env")
    env.update(_str_map((job or {}).get("env"), f"jobs.{job_id}.env"))

    return Pipeline(
        name=str(data.get("name") or job_id or default_name),
        steps=[_step(s, i) for i, s in enumerate(raw_steps)],
        trigger=_trigger(data),
        env=env,
    )


def load_yaml_workflow(path: str | Path) -> Pipeline:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return parse_workflow(data, default_name=p.stem)
