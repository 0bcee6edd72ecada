"""
gcloud CLI wrapper for Cloud Run.

SkyLink drives Google Cloud exclusively through the ``gcloud`` binary, the
same way an operator would from a shell. Command output is appended to the
run log rather than shown on the terminal.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from skylink.core.constants import (
    DEFAULT_MIN_INSTANCES,
    DEFAULT_PORT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SERVICE_NAME,
    REQUIRED_APIS,
)
from skylink.core.exceptions import DeployError, GcloudNotFoundError, ProjectNotSelectedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploySpec:
    """Everything ``gcloud run deploy`` needs."""

    image: str
    region: str
    memory: str
    cpu: str
    service: str = DEFAULT_SERVICE_NAME
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    port: int = DEFAULT_PORT
    min_instances: int = DEFAULT_MIN_INSTANCES

    def deploy_args(self) -> list[str]:
        return [
            "run",
            "deploy",
            self.service,
            f"--image={self.image}",
            "--platform=managed",
            f"--region={self.region}",
            f"--memory={self.memory}",
            f"--cpu={self.cpu}",
            f"--timeout={self.request_timeout}",
            "--allow-unauthenticated",
            f"--port={self.port}",
            f"--min-instances={self.min_instances}",
            "--quiet",
        ]


def canonical_host(service: str, project_number: str, region: str) -> str:
    """Stable Cloud Run hostname: ``<service>-<project number>.<region>.run.app``."""
    return f"{service}-{project_number}.{region}.run.app"


class Gcloud:
    """Runs gcloud commands, appending their output to *log_path*."""

    def __init__(self, log_path: Path | None = None, binary: str | None = None) -> None:
        self._binary = binary or shutil.which("gcloud") or ""
        self._log_path = log_path

    @property
    def available(self) -> bool:
        return bool(self._binary)

    def _run(self, args: list[str], *, capture: bool = False) -> subprocess.CompletedProcess[str]:
        if not self._binary:
            raise GcloudNotFoundError(
                "gcloud CLI not found on PATH. Install the Google Cloud SDK and run 'gcloud init'."
            )
        cmd = [self._binary, *args]
        logger.info("+ %s", shlex.join(cmd))
        result = subprocess.run(  # nosec B603
            cmd,
            capture_output=True,
            text=True,
            check=False,
        )
        self._log_output(result, include_stdout=not capture)
        return result

    def _log_output(self, result: subprocess.CompletedProcess[str], include_stdout: bool) -> None:
        if self._log_path is None:
            return
        with open(self._log_path, "a", encoding="utf-8") as f:
            if include_stdout and result.stdout:
                f.write(result.stdout)
            if result.stderr:
                f.write(result.stderr)

    # ------------------------------------------------------------------
    # Project
    # ------------------------------------------------------------------

    def active_project(self) -> str:
        """Return the active project ID or raise ProjectNotSelectedError."""
        result = self._run(["config", "get-value", "project"], capture=True)
        project = result.stdout.strip() if result.returncode == 0 else ""
        if not project or project == "(unset)":
            raise ProjectNotSelectedError(
                "No active gcloud project. Run: gcloud config set project <PROJECT_ID>"
            )
        return project

    def project_number(self, project: str) -> str:
        result = self._run(
            ["projects", "describe", project, "--format=value(projectNumber)"], capture=True
        )
        number = result.stdout.strip()
        if result.returncode != 0 or not number:
            raise DeployError(f"Could not read the project number of {project!r}")
        return number

    # ------------------------------------------------------------------
    # Cloud Run
    # ------------------------------------------------------------------

    def enable_apis(self, apis: tuple[str, ...] = REQUIRED_APIS) -> bool:
        """Best-effort: request the APIs Cloud Run needs. Returns False on failure."""
        result = self._run(["services", "enable", *apis, "--quiet"])
        if result.returncode != 0:
            logger.warning("gcloud services enable exited %d", result.returncode)
            return False
        return True

    def deploy(self, spec: DeploySpec) -> None:
        result = self._run(spec.deploy_args())
        if result.returncode != 0:
            raise DeployError(
                f"gcloud run deploy {spec.service} failed (exit {result.returncode})"
            )

    def delete_service(self, service: str, region: str) -> None:
        result = self._run(
            ["run", "services", "delete", service, f"--region={region}", "--quiet"]
        )
        if result.returncode != 0:
            raise DeployError(f"gcloud run services delete {service} failed (exit {result.returncode})")
