"""Tests for the named actions (checkout, setup-java, docker login)."""

import pytest

from shipline.actions import ACTIONS, action_name
from shipline.actions.docker_login import login_command
from shipline.actions.setup_java import java_major_version
from shipline.dsl import pipeline, sh, uses
from shipline.model import Event, Step
from shipline.runner import run_pipeline
from shipline.secrets import SecretStore

from .conftest import SHELL

MAIN = Event("push", "main")

FAKE_JAVA = """
    #!/bin/sh
    echo 'openjdk version "{version}" 2023-10-17' >&2
    echo 'OpenJDK Runtime Environment Temurin' >&2
"""

FAKE_GIT = """
    #!/bin/sh
    if [ "$2" = "--is-inside-work-tree" ]; then
      if [ -d .git ] || [ -d ../.git ]; then
        echo true
        exit 0
      fi
      echo "fatal: not a git repository" >&2
      exit 128
    fi
    if [ "$1" = "rev-parse" ]; then
      echo 0123456789abcdef0123456789abcdef01234567
      exit 0
    fi
    echo "git $*" >> "$FAKE_GIT_LOG"
    if [ "$1" = "clone" ]; then
      mkdir -p .git
    fi
"""


def _run(p, workspace, state_dir, console, **kwargs):
    return run_pipeline(p, MAIN, workspace=workspace, state_dir=state_dir, console=console, shell=SHELL, **kwargs)


def test_action_name_drops_version():
    assert action_name("actions/checkout@v2") == "actions/checkout"
    assert action_name("docker/login-action") == "docker/login-action"


def test_registered_actions():
    assert set(ACTIONS) == {"actions/checkout", "actions/setup-java", "docker/login-action"}


class TestSetupJava:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ('openjdk version "17.0.9" 2023-10-17', 17),
            ('java version "1.8.0_392"', 8),
            ('openjdk version "21" 2023-09-19', 21),
            ("no version here", None),
        ],
    )
    def test_java_major_version(self, text, expected):
        assert java_major_version(text) == expected

    def test_matching_version(self, fake_bin, workspace, state_dir, console):
        fake_bin("java", FAKE_JAVA.format(version="17.0.9"))
        p = pipeline("p", uses("jdk", "actions/setup-java@v2", distribution="adopt", **{"java-version": "17"}))
        result = _run(p, workspace, state_dir, console)

        assert result.status == "ok"
        assert "using Java 17 (adopt requested)" in result.steps[0].output

    def test_wrong_version_fails(self, fake_bin, workspace, state_dir, console):
        fake_bin("java", FAKE_JAVA.format(version="11.0.2"))
        p = pipeline(
            "p",
            uses("jdk", "actions/setup-java@v2", **{"java-version": "17"}),
            sh("after", "touch after"),
        )
        result = _run(p, workspace, state_dir, console)

        assert result.exit_code == 1
        assert "wanted Java 17, found 11" in result.failed_step.output
        assert not (workspace / "after").exists()

    def test_missing_java(self, fake_bin, workspace, state_dir, console, monkeypatch):
        # PATH with only the empty fake bin dir: no java anywhere
        monkeypatch.setenv("PATH", str(fake_bin("placeholder", "#!/bin/sh\n").parent))
        p = pipeline("p", uses("jdk", "actions/setup-java@v2", **{"java-version": "17"}))
        result = _run(p, workspace, state_dir, console)

        assert result.exit_code == 127


class TestDockerLogin:
    def test_login_command_reads_password_from_stdin(self):
        assert login_command("octo") == ["docker", "login", "--username", "octo", "--password-stdin"]
        assert login_command("octo", "ghcr.io")[2] == "ghcr.io"

    def test_password_goes_over_stdin_only(self, registry, workspace, state_dir, console, capsys):
        secrets = SecretStore({"DOCKER_USERNAME": "octo-user", "DOCKER_PASSWORD": "hunter2-xyz"})
        p = pipeline(
            "p",
            uses(
                "login",
                "docker/login-action@v2",
                username="${{ secrets.DOCKER_USERNAME }}",
                password="${{ secrets.DOCKER_PASSWORD }}",
            ),
        )
        result = _run(p, workspace, state_dir, console, secrets=secrets)

        assert result.status == "ok"
        assert (registry / "login_password").read_text() == "hunter2-xyz"
        args = (registry / "login_args").read_text()
        assert "hunter2-xyz" not in args
        assert "--password-stdin" in args
        assert "hunter2-xyz" not in capsys.readouterr().out

    def test_missing_credentials_fail_step(self, registry, workspace, state_dir, console):
        p = pipeline(
            "p",
            uses(
                "login",
                "docker/login-action@v2",
                username="${{ secrets.DOCKER_USERNAME }}",
                password="${{ secrets.DOCKER_PASSWORD }}",
            ),
            sh("after", "touch after"),
        )
        result = _run(p, workspace, state_dir, console)

        assert result.exit_code == 1
        assert "username" in result.failed_step.output
        assert not (registry / "login_password").exists()
        assert not (workspace / "after").exists()


class TestCheckout:
    def test_existing_checkout_is_reported(self, fake_bin, workspace, state_dir, console):
        fake_bin("git", FAKE_GIT)
        (workspace / ".git").mkdir()
        p = pipeline("p", uses("checkout", "actions/checkout@v2"))
        result = _run(p, workspace, state_dir, console)

        assert result.status == "ok"
        assert "0123456789abcdef" in result.steps[0].output

    def test_clones_when_given_repository(self, fake_bin, workspace, state_dir, console, tmp_path, monkeypatch):
        log = tmp_path / "git.log"
        monkeypatch.setenv("FAKE_GIT_LOG", str(log))
        fake_bin("git", FAKE_GIT)
        p = pipeline(
            "p",
            Step(
                name="checkout",
                uses="actions/checkout@v2",
                inputs={"repository": "https://example.com/app.git", "ref": "main"},
            ),
        )
        result = _run(p, workspace, state_dir, console)

        assert result.status == "ok"
        assert log.read_text().splitlines() == [
            "git clone https://example.com/app.git .",
            "git checkout main",
        ]

    def test_subdirectory_of_checkout_is_reported(self, fake_bin, workspace, state_dir, console):
        fake_bin("git", FAKE_GIT)
        (workspace / ".git").mkdir()
        app = workspace / "java-app-demo new"
        app.mkdir()
        p = pipeline("p", uses("checkout", "actions/checkout@v2"), sh("after", "touch after"))
        result = _run(p, app, state_dir, console)

        assert result.status == "ok"
        assert "0123456789abcdef" in result.steps[0].output
        assert (app / "after").exists()

    def test_fails_without_checkout_or_repository(self, fake_bin, workspace, state_dir, console):
        fake_bin("git", FAKE_GIT)
        p = pipeline("p", uses("checkout", "actions/checkout@v2"))
        result = _run(p, workspace, state_dir, console)

        assert result.exit_code == 1
        assert "not a git checkout" in result.failed_step.output
