"""Console output formatting utilities for shipline."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..model import RunResult
    from ..secrets import SecretStore


class Console:
    """Centralized console output formatting. Everything printed passes through the secret mask."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        self._secrets: Optional[SecretStore] = None

    def use_secrets(self, secrets: Optional[SecretStore]) -> None:
        """Mask these secret values in everything printed from now on."""
        self._secrets = secrets

    def _m(self, text: str) -> str:
        if self._secrets is None:
            return text
        return self._secrets.mask(text)

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        pipeline: str,
        workflow: str,
        run_number: int,
        step_count: int,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Pipeline: {pipeline}")
        print(f"Workflow: {workflow}")
        print(f"Run: #{run_number}")
        print(f"Steps: {step_count}")
        print()

    def print_run_skipped(self, pipeline: str, reason: str) -> None:
        print("\nRUN SKIPPED")
        print(f"Pipeline: {pipeline}")
        print(f"Reason: {reason}")

    def print_step(self, index: int, total: int, name: str) -> None:
        """Print step start message."""
        print(f"\nSTEP {index}/{total}: {name}")

    def print_command(self, cmd: str) -> None:
        if self.debug:
            print(f"$ {self._m(cmd)}")

    def print_success(self, name: str, duration: Optional[float] = None) -> None:
        """Print success message."""
        if duration is not None:
            print(f"STATUS: success ({duration:.1f}s)")
        else:
            print("STATUS: success")

    def print_output(self, output: str) -> None:
        """Print captured step output, indented."""
        text = self._m(output).rstrip()
        if not text:
            return
        for line in text.splitlines():
            print(f"  | {line}")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
        output: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Step name
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
            output: Captured step output, shown in full
        """
        print(f"STEP FAILED: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if hint:
            print(f"Hint: {hint}")
        reason = self._m(reason)
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # Show first line of error for non-debug mode
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")
        if output:
            print("Output:")
            self.print_output(output)

    def print_plan_step(self, index: int, name: str, detail: str) -> None:
        """Print one step of a plan."""
        print(f"  {index}. {name} ({self._m(detail)})")

    def print_results(self, result: RunResult) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for step in result.steps:
            status_display = step.status.upper() if step.status != "ok" else "SUCCESS"
            print(f"  {step.index}. {step.name}: {status_display}")
        print(f"Run #{result.run_number}: {result.status.upper()} (exit {result.exit_code})")

    def print_warning(self, message: str) -> None:
        print(f"WARNING: {self._m(message)}", file=sys.stderr)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(self._m(message), file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {self._m(detail)}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            print(self._m(traceback.format_exc()), file=sys.stderr)
        else:
            print(f"Error: {self._m(str(exc))}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(self._m(message))

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {self._m(message)}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
