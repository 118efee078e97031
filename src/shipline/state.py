# state.py
# On-disk run bookkeeping:
#   <state_dir>/
#     run_number   last allocated run number (plain integer)
#     run.lock     present while a run is executing (holds the owner pid)
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from . import settings


class RunCounter:
    """Monotonic run numbers, persisted so every run gets a fresh image tag."""

    def __init__(self, state_dir: str | Path = settings.STATE_DIR):
        self.root = Path(state_dir).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.path = self.root / "run_number"

    def current(self) -> int:
        if not self.path.exists():
            return 0
        text = self.path.read_text(encoding="utf-8").strip()
        return int(text) if text else 0

    def _write(self, value: int) -> None:
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(f"{value}\n", encoding="utf-8")
        os.replace(tmp, self.path)

    def next(self) -> int:
        value = self.current() + 1
        self._write(value)
        return value

    def observe(self, value: int) -> None:
        """Record an externally supplied run number so later runs never reuse it."""
        if value > self.current():
            self._write(value)


class RunLockHeld(Exception):
    def __init__(self, path: Path, owner: Optional[str]):
        self.path = path
        self.owner = owner
        super().__init__(f"another run holds {path} (pid {owner or 'unknown'})")


class RunLock:
    """
    Exclusive lock file; only one run may execute per state directory.

    Usage:
        with RunLock(".shipline"):
            ...
    """

    def __init__(self, state_dir: str | Path = settings.STATE_DIR):
        self.root = Path(state_dir).resolve()
        self.path = self.root / "run.lock"
        self._held = False

    def acquire(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            try:
                owner = self.path.read_text(encoding="utf-8").strip() or None
            except OSError:
                owner = None
            raise RunLockHeld(self.path, owner) from None
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        self._held = True

    def release(self) -> None:
        if self._held:
            self._held = False
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
