"""Shared pytest fixtures for all test modules."""

import os
import textwrap
from pathlib import Path

import pytest

from shipline.ui.console import Console

SHELL = "/bin/sh"

FAKE_DOCKER = """
    #!/bin/sh
    reg="$FAKE_REGISTRY"
    cmd="$1"
    shift
    case "$cmd" in
      login)
        cat > "$reg/login_password"
        echo "$@" > "$reg/login_args"
        echo "Login Succeeded"
        ;;
      build)
        echo "$2" >> "$reg/built"
        echo "Successfully tagged $2"
        ;;
      push)
        if grep -qx "$1" "$reg/built" 2>/dev/null; then
          echo "$1" >> "$reg/pushed"
          echo "pushed $1"
        else
          echo "An image does not exist locally with the tag: $1" >&2
          exit 1
        fi
        ;;
      logout)
        rm -f "$reg/login_password"
        echo "Removing login credentials"
        ;;
      *)
        echo "unknown docker command $cmd" >&2
        exit 1
        ;;
    esac
"""

FAKE_MVN = """
    #!/bin/sh
    echo "[INFO] mvn $* in $(pwd)"
    exit "${FAKE_MVN_EXIT:-0}"
"""

FAKE_TRIVY = """
    #!/bin/sh
    code=0
    while [ $# -gt 0 ]; do
      if [ "$1" = "--exit-code" ]; then code="$2"; fi
      shift
    done
    echo "Total: 1 (CRITICAL: 1)"
    exit "$code"
"""


@pytest.fixture
def fake_bin(tmp_path, monkeypatch):
    """Install fake executables into a directory at the front of PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")

    def install(name: str, script: str) -> Path:
        path = bin_dir / name
        path.write_text(textwrap.dedent(script).lstrip(), encoding="utf-8")
        path.chmod(0o755)
        return path

    return install


@pytest.fixture
def registry(tmp_path, monkeypatch, fake_bin):
    """A fake docker/mvn/trivy toolchain; pushed images land in registry/'pushed'."""
    reg = tmp_path / "registry"
    reg.mkdir()
    monkeypatch.setenv("FAKE_REGISTRY", str(reg))
    monkeypatch.delenv("FAKE_MVN_EXIT", raising=False)
    fake_bin("docker", FAKE_DOCKER)
    fake_bin("mvn", FAKE_MVN)
    fake_bin("trivy", FAKE_TRIVY)
    return reg


@pytest.fixture
def workspace(tmp_path) -> Path:
    ws = tmp_path / "ws"
    ws.mkdir()
    return ws


@pytest.fixture
def state_dir(tmp_path) -> Path:
    return tmp_path / "state"


@pytest.fixture
def console() -> Console:
    return Console(debug=False)


def pushed_images(reg: Path) -> list:
    pushed = reg / "pushed"
    if not pushed.exists():
        return []
    return pushed.read_text().split()
