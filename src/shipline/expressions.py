# expressions.py
# ${{ ... }} placeholder substitution for step commands, inputs and env.
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional

from .secrets import SecretStore

_PLACEHOLDER = re.compile(r"\$\{\{\s*([^}]*?)\s*\}\}")


class ExpressionError(ValueError):
    """Raised for a placeholder that names an unknown context or key."""


@dataclass
class ExpressionContext:
    """
    Values visible to placeholders while a run is executing.

    on_missing_secret is called with the secret name the first time an
    undefined secret is referenced; the placeholder itself evaluates to "".
    """
    secrets: SecretStore
    run_number: int
    event_name: str = "push"
    branch: str | None = None
    workspace: str = "."
    env: Dict[str, str] = field(default_factory=dict)
    on_missing_secret: Optional[Callable[[str], None]] = None
    _warned: set = field(default_factory=set, repr=False)

    def _github(self) -> Mapping[str, str]:
        return {
            "run_number": str(self.run_number),
            "ref_name": self.branch or "",
            "event_name": self.event_name,
            "workspace": self.workspace,
        }

    def lookup(self, expr: str) -> str:
        root, _, key = expr.partition(".")
        if not key:
            raise ExpressionError(f"unsupported expression: ${{{{ {expr} }}}}")

        if root == "secrets":
            if key in self.secrets:
                return self.secrets[key]
            if key not in self._warned:
                self._warned.add(key)
                if self.on_missing_secret is not None:
                    self.on_missing_secret(key)
            return ""

        if root == "github":
            values = self._github()
        elif root == "run":
            values = {"number": str(self.run_number)}
        elif root == "env":
            values = self.env
        else:
            raise ExpressionError(f"unknown context {root!r} in ${{{{ {expr} }}}}")

        if key not in values:
            raise ExpressionError(f"unknown key {key!r} in ${{{{ {expr} }}}}")
        return values[key]


def substitute(text: str, ctx: ExpressionContext) -> str:
    """Replace every ${{ ... }} in text. Text without placeholders is returned as is."""
    if "${{" not in text:
        return text
    return _PLACEHOLDER.sub(lambda m: ctx.lookup(m.group(1)), text)


def substitute_map(values: Mapping[str, str], ctx: ExpressionContext) -> Dict[str, str]:
    return {k: substitute(str(v), ctx) for k, v in values.items()}
