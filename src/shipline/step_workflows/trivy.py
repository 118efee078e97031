# step_workflows/trivy.py
from __future__ import annotations

from ..model import Step

# Installs Trivy from the Aqua Security apt repository (Debian/Ubuntu hosts).
INSTALL_TRIVY_SCRIPT = "\n".join(
    [
        "sudo apt-get update",
        "sudo apt-get install -y wget apt-transport-https gnupg lsb-release",
        "wget -qO - https://aquasecurity.github.io/trivy-repo/deb/public.key | sudo apt-key add -",
        'echo "deb https://aquasecurity.github.io/trivy-repo/deb $(lsb_release -sc) main"'
        " | sudo tee /etc/apt/sources.list.d/trivy.list",
        "sudo apt-get update",
        "sudo apt-get install -y trivy",
    ]
)


def install_trivy_step(name: str = "Install Trivy", *, skip_if_present: bool = True) -> Step:
    script = INSTALL_TRIVY_SCRIPT
    if skip_if_present:
        script = "if command -v trivy >/dev/null 2>&1; then\n  trivy --version\n  exit 0\nfi\n" + script
    return Step(name=name, run=script)


def trivy_scan_step(
    name: str,
    image: str,
    *,
    severity: str = "CRITICAL",
    fail_on_findings: bool = False,
) -> Step:
    """
    Scan an image for vulnerabilities.

    Advisory by default: findings are printed but the step exits 0, so a
    push after it still happens. fail_on_findings=True turns the scan into
    a gate (trivy exits 1 when anything at `severity` is found).
    """
    exit_code = 1 if fail_on_findings else 0
    return Step(
        name=name,
        run=f"trivy image --severity {severity} --exit-code {exit_code} {image}",
    )
