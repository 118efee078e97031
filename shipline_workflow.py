# shipline_workflow.py
# Build the Spring Boot demo with Maven, package it as an image tagged with
# the run number, scan it with Trivy (advisory), push it to Docker Hub.
from __future__ import annotations

from shipline.dsl import pipeline, uses
from shipline.step_workflows.docker import (
    docker_build_step,
    docker_login_step,
    docker_logout_step,
    docker_push_step,
    image_ref,
)
from shipline.step_workflows.maven import maven_step
from shipline.step_workflows.trivy import install_trivy_step, trivy_scan_step

APP_DIR = "java-app-demo new"
IMAGE = image_ref("${{ secrets.DOCKER_USERNAME }}/springboot-app", "${{ github.run_number }}")


def workflow():
    return pipeline(
        "Build, Scan and Push to Docker Hub",
        uses("Checkout repository", "actions/checkout@v2"),
        uses("Set up JDK 17", "actions/setup-java@v2", distribution="adopt", **{"java-version": "17"}),
        maven_step("Build with Maven", "clean package", cwd=APP_DIR),
        docker_login_step("Login to Docker Hub"),
        docker_build_step(
            "Build Docker image",
            IMAGE,
            dockerfile=f"{APP_DIR}/javapack/Dockerfile",
            context=APP_DIR,
        ),
        install_trivy_step("Install Trivy"),
        # advisory: a CRITICAL finding is reported but does not stop the push
        trivy_scan_step("Scan Docker image for CRITICAL vulnerabilities", IMAGE, severity="CRITICAL"),
        docker_push_step("Push Docker image to Docker Hub", IMAGE),
        docker_logout_step("Logout from Docker Hub"),
        on="push",
        branches=["main"],
    )
