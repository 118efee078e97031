# step_workflows/docker.py
from __future__ import annotations

import shlex

from ..model import Step


def image_ref(repository: str, tag: str | int) -> str:
    """'user/app', 5 -> 'user/app:5'"""
    return f"{repository}:{tag}"


# ---------------------------------------------------------------------
# Docker step helpers
# ---------------------------------------------------------------------

def docker_login_step(
    name: str = "Login to Docker Hub",
    *,
    username: str = "${{ secrets.DOCKER_USERNAME }}",
    password: str = "${{ secrets.DOCKER_PASSWORD }}",
    registry: str | None = None,
) -> Step:
    """Registry login through the docker/login-action action (password goes over stdin)."""
    inputs = {"username": username, "password": password}
    if registry:
        inputs["registry"] = registry
    return Step(name=name, uses="docker/login-action@v2", inputs=inputs)


def docker_build_step(
    name: str,
    image: str,
    *,
    dockerfile: str | None = None,
    context: str = ".",
    cwd: str | None = None,
) -> Step:
    """
    `docker build -t <image> [-f <dockerfile>] <context>`

    `image` may contain placeholders, e.g.
    "${{ secrets.DOCKER_USERNAME }}/app:${{ github.run_number }}".
    """
    parts = ["docker", "build", "-t", image]
    if dockerfile:
        parts.extend(["-f", dockerfile])
    parts.append(context)
    return Step(name=name, run=_join(parts), cwd=cwd)


def docker_push_step(name: str, image: str) -> Step:
    return Step(name=name, run=_join(["docker", "push", image]))


def docker_logout_step(name: str = "Logout from Docker Hub", registry: str | None = None) -> Step:
    """Clears the registry credentials cached by docker login."""
    parts = ["docker", "logout"]
    if registry:
        parts.append(registry)
    return Step(name=name, run=_join(parts))


def _join(parts: list[str]) -> str:
    # placeholders are substituted before the shell sees the command,
    # so only quote parts that need it (paths with spaces)
    return " ".join(p if "${{" in p else shlex.quote(p) for p in parts)
