"""Command line entry point: ``ec2-runner start`` and ``ec2-runner stop``."""

from __future__ import annotations

import argparse
import asyncio
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from injector import Injector
from loguru import logger

from .aws import InstanceLifecycle, RunnerModule
from .config import ConfigError, RunnerConfig, generate_unique_label, load_config
from .logging import LogConfig, setup_logging, teardown_logging

TOKEN_ENV = "RUNNER_REGISTRATION_TOKEN"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ec2-runner",
        description="Start or stop an ephemeral EC2 GitHub Actions runner",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to ec2-runner.toml")
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", default=None)
    sub = parser.add_subparsers(dest="mode", required=True)

    start = sub.add_parser("start", help="Launch a runner instance")
    start.add_argument("--label", default=None)
    start.add_argument("--token", default=None, help=f"Registration token (default: ${TOKEN_ENV})")
    start.add_argument("--no-wait", action="store_true", help="Return without waiting for running state")

    stop = sub.add_parser("stop", help="Terminate a runner instance")
    stop.add_argument("--instance-id", default=None)
    return parser


def write_outputs(outputs: Mapping[str, str], environ: Mapping[str, str] | None = None) -> None:
    """Append step outputs to ``$GITHUB_OUTPUT`` when running inside Actions."""
    environ = os.environ if environ is None else environ
    path = environ.get("GITHUB_OUTPUT")
    if not path:
        return
    with open(path, "a") as f:
        for key, value in outputs.items():
            f.write(f"{key}={value}\n")


async def start(
    lifecycle: InstanceLifecycle,
    label: str,
    token: str,
    *,
    wait: bool = True,
) -> str:
    instance_id = await lifecycle.start(label, token)
    if wait:
        await lifecycle.wait_until_running(instance_id)
    return instance_id


async def stop(lifecycle: InstanceLifecycle, instance_id: str | None = None) -> None:
    await lifecycle.terminate(instance_id)


def run(args: argparse.Namespace, config: RunnerConfig) -> None:
    lifecycle = Injector([RunnerModule(config)]).get(InstanceLifecycle)

    match args.mode:
        case "start":
            config.validate_for_start()
            token = args.token or os.environ.get(TOKEN_ENV, "")
            if not token:
                raise ConfigError(f"A registration token is required (--token or ${TOKEN_ENV})")
            label = args.label or config.label or generate_unique_label()
            instance_id = asyncio.run(start(lifecycle, label, token, wait=not args.no_wait))
            write_outputs({"label": label, "ec2-instance-id": instance_id})
            print(instance_id)
        case "stop":
            if not args.instance_id:
                config.validate_for_stop()
            asyncio.run(stop(lifecycle, args.instance_id))


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    handler_ids = setup_logging(
        LogConfig.from_environ(os.environ, level=args.log_level, file=args.log_file)
    )
    try:
        config = load_config(path=args.config)
        logger.debug("Loaded configuration: {}", config)
        run(args, config)
    finally:
        teardown_logging(handler_ids)
    return 0
