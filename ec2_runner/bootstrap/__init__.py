"""Declarative user-data DSL for the runner instance.

User data scripts run once as root during first boot. ``user_data_script``
composes the operations in this package into the runner bootstrap:

Example:
    >>> from ec2_runner.bootstrap import user_data_script
    >>>
    >>> lines = user_data_script(config, token="AABBCC", label="ci-xyz")
    >>> lines[0]
    '#!/bin/bash'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import GITHUB_URL, RUNNER_VERSION, RUNNER_WORK_DIR

# Core types and composition
from .compose import (
    SHEBANG,
    Op,
    encode,
    resolve,
    script,
)

# Core operations
from .ops import (
    allow_run_as_root,
    and_then,
    cd,
    configure_runner,
    detect_arch,
    download_runner,
    echo_file,
    extract_runner,
    pre_runner,
    runner_archive,
    source,
    svc,
    workdir,
)

if TYPE_CHECKING:
    from ..config import RunnerConfig


def user_data_script(config: RunnerConfig, token: str, label: str) -> list[str]:
    """Build the boot script lines for a runner instance.

    With ``runner_home_dir`` configured the runner is expected to be
    pre-installed in the AMI, so the script only enters that directory.
    Otherwise it creates a work directory and downloads the runner release
    matching the CPU architecture before registering it.

    Args:
        config: Runner configuration (repository, home dir, pre-runner script).
        token: One-time GitHub registration token.
        label: Label the runner registers with.

    Returns:
        Ordered shell lines, shebang first.
    """
    repo_url = f"{GITHUB_URL}/{config.owner}/{config.repo}"
    start_runner = [
        allow_run_as_root(),
        configure_runner(repo_url, token, label),
        svc("install"),
        svc("start"),
    ]

    if config.runner_home_dir:
        return script(
            cd(config.runner_home_dir),
            *pre_runner(config.pre_runner_script),
            *start_runner,
        )

    return script(
        workdir(RUNNER_WORK_DIR),
        *pre_runner(config.pre_runner_script),
        detect_arch(),
        download_runner(RUNNER_VERSION),
        extract_runner(RUNNER_VERSION),
        *start_runner,
    )


__all__ = [
    # Composition
    "SHEBANG",
    "Op",
    "encode",
    "resolve",
    "script",
    # Operations
    "allow_run_as_root",
    "and_then",
    "cd",
    "configure_runner",
    "detect_arch",
    "download_runner",
    "echo_file",
    "extract_runner",
    "pre_runner",
    "runner_archive",
    "source",
    "svc",
    "workdir",
    # Runner bootstrap
    "user_data_script",
]
