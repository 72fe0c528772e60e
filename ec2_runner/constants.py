"""Centralized constants for ec2-runner.

Runner release pins, boot script paths and EC2 names live here so the
boot script builder and the lifecycle agree on them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# GitHub Actions Runner
# =============================================================================

RUNNER_VERSION: Final = "2.307.1"
RUNNER_DOWNLOAD_URL: Final = "https://github.com/actions/runner/releases/download"
RUNNER_WORK_DIR: Final = "actions-runner"
PRE_RUNNER_SCRIPT: Final = "pre-runner-script.sh"
GITHUB_URL: Final = "https://github.com"

# uname -m -> runner release architecture
RUNNER_ARCHITECTURES: Final[dict[str, str]] = {
    "aarch64": "arm64",
    "amd64|x86_64": "x64",
}

# =============================================================================
# EC2
# =============================================================================


class TaggedResource(StrEnum):
    """EC2 resource types that receive the configured tags."""

    INSTANCE = "instance"
    VOLUME = "volume"


INSTANCE_RUNNING_WAITER: Final = "instance_running"
