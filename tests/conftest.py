from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from loguru import logger

from ec2_runner.aws import EC2ClientFactory, InstanceLifecycle
from ec2_runner.config import RunnerConfig


class FakeEC2:
    """Stand-in for an aioboto3 EC2 client."""

    def __init__(self, instance_id: str = "i-0123456789abcdef0") -> None:
        self.run_instances = AsyncMock(return_value={"Instances": [{"InstanceId": instance_id}]})
        self.terminate_instances = AsyncMock(return_value={"TerminatingInstances": []})
        self.waiter = MagicMock()
        self.waiter.wait = AsyncMock(return_value=None)
        self.get_waiter = MagicMock(return_value=self.waiter)
        self.opened = 0


def fake_factory(client: FakeEC2) -> EC2ClientFactory:
    @asynccontextmanager
    async def factory() -> AsyncIterator[Any]:
        client.opened += 1
        yield client

    return EC2ClientFactory(factory)


@pytest.fixture
def config() -> RunnerConfig:
    return RunnerConfig(
        owner="octo-org",
        repo="octo-repo",
        ec2_image_id="ami-0abcdef1234567890",
        ec2_instance_type="t3.medium",
        subnet_id="subnet-0a1b2c3d",
        security_group_id="sg-0a1b2c3d",
        iam_role_name="runner-profile",
        pre_runner_script="apt-get update",
    )


@pytest.fixture
def ec2() -> FakeEC2:
    return FakeEC2()


@pytest.fixture
def make_lifecycle(ec2: FakeEC2):
    """Build a lifecycle over the shared fake client for a given config."""

    def make(config: RunnerConfig) -> InstanceLifecycle:
        return InstanceLifecycle(config=config, ec2=fake_factory(ec2))

    return make


@pytest.fixture
def lifecycle(config: RunnerConfig, make_lifecycle) -> InstanceLifecycle:
    return make_lifecycle(config)


@pytest.fixture
def log_records():
    """Capture ec2_runner loguru records as dicts."""
    records: list[dict[str, Any]] = []
    logger.enable("ec2_runner")
    hid = logger.add(lambda m: records.append(m.record), level="DEBUG", filter="ec2_runner")
    yield records
    logger.remove(hid)
    logger.disable("ec2_runner")
