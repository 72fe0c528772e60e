"""Runner configuration.

Immutable configuration read once at process start and injected into the
instance lifecycle. Values come from an optional ``ec2-runner.toml`` file
(``[runner]`` table) overlaid with GitHub Actions inputs (``INPUT_*``
environment variables).
"""

from __future__ import annotations

import json
import os
import random
import string
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .constants import TaggedResource

type RawConfig = dict[str, Any]
type Tag = dict[str, str]

CONFIG_NAME = "ec2-runner.toml"

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off", ""})


class ConfigError(ValueError):
    """Raised when runner configuration is missing or malformed."""


@dataclass(frozen=True, slots=True)
class RunnerConfig:
    """Ephemeral runner configuration.

    Example:
        >>> config = RunnerConfig(
        ...     owner="octo", repo="app",
        ...     ec2_image_id="ami-123", ec2_instance_type="t3.micro",
        ...     subnet_id="subnet-1", security_group_id="sg-1",
        ... )

    Args:
        owner: Repository owner the runner registers against.
        repo: Repository name.
        region: AWS region. If None, the session default is used.
        ec2_image_id: AMI to launch.
        ec2_instance_type: EC2 instance type.
        subnet_id: Subnet for the primary network interface.
        security_group_id: Security group for the primary network interface.
        iam_role_name: Instance profile name attached to the instance.
        key_name: EC2 key pair name. Empty means no key pair.
        spot_instance: Launch as a one-time spot instance.
        assign_public_ip: Associate a public IP with the network interface.
        runner_home_dir: Directory of a runner pre-installed in the AMI.
        pre_runner_script: Shell commands run before the runner registers.
        resource_tags: Tags applied to the instance and its volumes.
        ec2_instance_id: Instance to terminate in stop mode.
        label: Runner label.
    """

    owner: str = ""
    repo: str = ""
    region: str | None = None
    ec2_image_id: str = ""
    ec2_instance_type: str = ""
    subnet_id: str = ""
    security_group_id: str = ""
    iam_role_name: str = ""
    key_name: str = ""
    spot_instance: bool = False
    assign_public_ip: bool = False
    runner_home_dir: str = ""
    pre_runner_script: str = ""
    resource_tags: tuple[Tag, ...] = ()
    ec2_instance_id: str = ""
    label: str = ""

    @property
    def tag_specifications(self) -> list[dict[str, Any]]:
        """TagSpecifications for RunInstances, tagging the instance and its volumes."""
        if not self.resource_tags:
            return []
        tags = [dict(tag) for tag in self.resource_tags]
        return [
            {"ResourceType": TaggedResource.INSTANCE.value, "Tags": tags},
            {"ResourceType": TaggedResource.VOLUME.value, "Tags": tags},
        ]

    def validate_for_start(self) -> None:
        _require(
            self,
            "owner",
            "repo",
            "ec2_image_id",
            "ec2_instance_type",
            "subnet_id",
            "security_group_id",
        )

    def validate_for_stop(self) -> None:
        _require(self, "ec2_instance_id")


def _require(config: RunnerConfig, *names: str) -> None:
    missing = [name for name in names if not getattr(config, name)]
    if missing:
        raise ConfigError(f"Missing required inputs: {', '.join(missing)}")


def generate_unique_label() -> str:
    """Random 5-character label for runners started without one."""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choices(alphabet, k=5))


# =============================================================================
# Parsing
# =============================================================================


def parse_bool(value: str | bool, *, name: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise ConfigError(f"Invalid boolean for {name}: {value!r}")
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def parse_tags(value: str | list[Any], *, name: str = "resource_tags") -> tuple[Tag, ...]:
    """Parse tags given as a JSON list (or TOML array) of ``{Key, Value}`` objects."""
    if isinstance(value, str):
        if not value.strip():
            return ()
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON for {name}: {e}") from e

    if not isinstance(value, list):
        raise ConfigError(f"{name} must be a list of {{Key, Value}} objects")

    tags: list[Tag] = []
    for item in value:
        if not isinstance(item, dict) or "Key" not in item or "Value" not in item:
            raise ConfigError(f"{name} entries need Key and Value: {item!r}")
        tags.append({"Key": str(item["Key"]), "Value": str(item["Value"])})
    return tuple(tags)


def _input_var(name: str) -> str:
    """Environment variable GitHub Actions uses for an action input."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


_INPUTS: dict[str, str] = {
    "aws-region": "region",
    "ec2-image-id": "ec2_image_id",
    "ec2-instance-type": "ec2_instance_type",
    "subnet-id": "subnet_id",
    "security-group-id": "security_group_id",
    "iam-role-name": "iam_role_name",
    "key-name": "key_name",
    "spot-instance": "spot_instance",
    "assign-public-ip-to-instance": "assign_public_ip",
    "runner-home-dir": "runner_home_dir",
    "pre-runner-script": "pre_runner_script",
    "aws-resource-tags": "resource_tags",
    "ec2-instance-id": "ec2_instance_id",
    "label": "label",
}


def _from_environ(environ: Mapping[str, str]) -> RawConfig:
    raw: RawConfig = {}
    for input_name, field_name in _INPUTS.items():
        value = environ.get(_input_var(input_name), "")
        if value:
            raw[field_name] = value

    if "region" not in raw and environ.get("AWS_REGION"):
        raw["region"] = environ["AWS_REGION"]

    if repository := environ.get("GITHUB_REPOSITORY", ""):
        owner, _, repo = repository.partition("/")
        raw["owner"] = owner
        raw["repo"] = repo
    return raw


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f).get("runner", {})


def _build(raw: RawConfig) -> RunnerConfig:
    known = {f.name for f in fields(RunnerConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"Unknown runner settings: {', '.join(sorted(unknown))}")

    values = dict(raw)
    for flag in ("spot_instance", "assign_public_ip"):
        if flag in values:
            values[flag] = parse_bool(values[flag], name=flag)
    if "resource_tags" in values:
        values["resource_tags"] = parse_tags(values["resource_tags"])
    return RunnerConfig(**values)


def load_config(
    *,
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RunnerConfig:
    """Load configuration from ``ec2-runner.toml`` and action inputs.

    Args:
        path: TOML file to read; it must exist. Defaults to ``ec2-runner.toml``
            in the working directory, which is skipped when absent.
        environ: Environment to read inputs from. Defaults to ``os.environ``.

    Raises:
        ConfigError: If ``path`` does not exist, a value is malformed or a
            setting is unknown.
    """
    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    file_cfg = _read_toml(path or Path.cwd() / CONFIG_NAME)
    env_cfg = _from_environ(os.environ if environ is None else environ)
    return _build({**file_cfg, **env_cfg})
