# actions/__init__.py
# Named reusable actions, referenced from a step with uses="owner/name@ref".
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

from . import checkout, docker_login, setup_java

if TYPE_CHECKING:
    from ..model import Step
    from ..runner import StepContext

ActionFn = Callable[["Step", "StepContext"], str]

ACTIONS: Dict[str, ActionFn] = {
    "actions/checkout": checkout.run_step,
    "actions/setup-java": setup_java.run_step,
    "docker/login-action": docker_login.run_step,
}


def action_name(uses: str) -> str:
    """'actions/checkout@v2' -> 'actions/checkout'. The version ref is not used."""
    return uses.split("@", 1)[0].strip()


def run_action(step: Step, ctx: StepContext) -> str:
    # Import here to avoid circular import
    from ..runner import CIError

    name = action_name(step.uses or "")
    fn = ACTIONS.get(name)
    if fn is None:
        raise CIError(
            kind="unknown_action",
            step=step.name,
            message=f"Unknown action: {step.uses}",
            details={"hint": f"Known actions: {', '.join(sorted(ACTIONS))}"},
        )
    return fn(step, ctx)
