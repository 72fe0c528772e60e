"""Logging for a single ``ec2-runner`` invocation.

Logging is disabled by default (library behavior). The CLI enables it for
the duration of one start or stop step. Inside a GitHub Actions job the
console lines carry workflow-command prefixes (``::error::``,
``::warning::``, ``::debug::``) so the runner UI annotates failures and
only shows debug output when step debugging is on.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record

logger.disable("ec2_runner")

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# loguru level -> GitHub workflow command
WORKFLOW_COMMANDS: dict[str, str] = {
    "DEBUG": "debug",
    "WARNING": "warning",
    "ERROR": "error",
}


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Logging configuration for one CLI run.

    Attributes:
        level: Minimum console log level.
        file: Path of a log file for this run, overwritten on each run.
        github_actions: Emit workflow commands instead of the colored format.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    github_actions: bool = False

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str],
        *,
        level: LogLevel = "INFO",
        file: str | None = None,
    ) -> LogConfig:
        return cls(level=level, file=file, github_actions=environ.get("GITHUB_ACTIONS") == "true")


def workflow_format(record: Record) -> str:
    """loguru format for GitHub Actions: ``::error::message``."""
    command = WORKFLOW_COMMANDS.get(record["level"].name)
    prefix = f"::{command}::" if command else ""
    return prefix + "{message}\n{exception}"


def setup_logging(config: LogConfig) -> list[int]:
    """Enable ec2_runner logging and return handler IDs for cleanup."""
    logger.enable("ec2_runner")

    if config.github_actions:
        # The runner hides ::debug:: lines unless step debugging is enabled
        console = logger.add(sys.stderr, level="DEBUG", format=workflow_format, filter="ec2_runner")
    else:
        console = logger.add(
            sys.stderr,
            level=config.level,
            format=CONSOLE_FORMAT,
            colorize=True,
            filter="ec2_runner",
        )
    handler_ids = [console]

    if config.file:
        handler_ids.append(
            logger.add(
                config.file,
                level="DEBUG",
                format=FILE_FORMAT,
                mode="w",
                diagnose=False,  # Don't expose tokens in tracebacks
                filter="ec2_runner",
            )
        )

    return handler_ids


def teardown_logging(handler_ids: list[int]) -> None:
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable("ec2_runner")
