# secrets.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, Mapping, Optional

from . import settings

MASK = "***"


class SecretStore(Mapping[str, str]):
    """
    Read-only bag of named secret values.

    Values are never written to disk by the runner and never shown:
    repr() lists names only, and mask() scrubs every value out of a string
    before it reaches the console or a StepResult.
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values: Dict[str, str] = {k: str(v) for k, v in (values or {}).items()}

    @classmethod
    def from_environ(
        cls,
        names: Iterable[str] = (),
        *,
        environ: Optional[Mapping[str, str]] = None,
        prefix: Optional[str] = None,
    ) -> "SecretStore":
        """
        Collect secrets from the environment.

        Every `<prefix><NAME>` variable becomes secret NAME; every name in
        `names` is read from the variable of the same name.
        """
        environ = os.environ if environ is None else environ
        prefix = settings.SECRET_PREFIX if prefix is None else prefix

        values: Dict[str, str] = {}
        if prefix:
            for key, value in environ.items():
                if key.startswith(prefix) and len(key) > len(prefix):
                    values[key[len(prefix):]] = value
        for name in names:
            if name not in environ:
                raise KeyError(f"secret {name!r} requested but ${name} is not set")
            values[name] = environ[name]
        return cls(values)

    @classmethod
    def from_file(cls, path: str | Path) -> "SecretStore":
        """Parse NAME=VALUE lines. Blank lines and # comments are ignored."""
        values: Dict[str, str] = {}
        for lineno, raw in enumerate(Path(path).read_text(encoding="utf-8").splitlines(), 1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                raise ValueError(f"{path}:{lineno}: expected NAME=VALUE")
            name, value = line.split("=", 1)
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            values[name.strip()] = value
        return cls(values)

    def merged(self, other: Mapping[str, str]) -> "SecretStore":
        values = dict(self._values)
        values.update(other)
        return SecretStore(values)

    def mask(self, text: str | None) -> str:
        if not text:
            return text or ""
        # longest first so a secret containing another is scrubbed whole
        for value in sorted(self._values.values(), key=len, reverse=True):
            if value:
                text = text.replace(value, MASK)
        return text

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SecretStore(names={sorted(self._values)})"
