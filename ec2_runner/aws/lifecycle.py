"""Lifecycle operations (start, wait, terminate) for the runner EC2 instance.

Each operation opens one EC2 client, issues one request and returns.
Provider failures are logged once and re-raised unchanged; nothing here
retries or cleans up after a failed step.
"""

from __future__ import annotations

import copy
import json
from typing import Any

from injector import inject
from loguru import logger

from ..bootstrap import encode, user_data_script
from ..config import RunnerConfig
from ..constants import INSTANCE_RUNNING_WAITER
from .clients import EC2ClientFactory

log = logger.bind(component="aws-lifecycle")

SPOT_MARKET_OPTIONS: dict[str, Any] = {
    "MarketType": "spot",
    "SpotOptions": {
        "SpotInstanceType": "one-time",
        "InstanceInterruptionBehavior": "terminate",
    },
}


class InstanceLifecycle:
    """Starts, waits for and terminates the ephemeral runner instance.

    Flow:
        start(label, token) -> instance id
        wait_until_running(instance id)
        terminate(instance id)  # later, from a separate invocation
    """

    @inject
    def __init__(self, config: RunnerConfig, ec2: EC2ClientFactory) -> None:
        self.config = config
        self.ec2 = ec2

    def build_launch_params(self, label: str, token: str) -> dict[str, Any]:
        """Assemble the RunInstances request for a single runner instance."""
        config = self.config
        user_data = user_data_script(config, token, label)

        params: dict[str, Any] = {
            "ImageId": config.ec2_image_id,
            "InstanceType": config.ec2_instance_type,
            "MinCount": 1,
            "MaxCount": 1,
            "UserData": encode(user_data),
            "IamInstanceProfile": {"Name": config.iam_role_name},
            "TagSpecifications": config.tag_specifications,
            "NetworkInterfaces": [
                {
                    "AssociatePublicIpAddress": config.assign_public_ip,
                    "DeviceIndex": 0,
                    "SubnetId": config.subnet_id,
                    "Groups": [config.security_group_id],
                }
            ],
        }

        if config.key_name:
            params["KeyName"] = config.key_name

        if config.spot_instance:
            params["InstanceMarketOptions"] = copy.deepcopy(SPOT_MARKET_OPTIONS)

        return params

    async def start(self, label: str, token: str) -> str:
        """Launch the runner instance and return its id."""
        params = self.build_launch_params(label, token)
        log.debug("RunInstances parameters: {}", json.dumps(params))

        try:
            async with self.ec2() as ec2:
                response = await ec2.run_instances(**params)
            instance_id = response["Instances"][0]["InstanceId"]
        except Exception:
            log.error("AWS EC2 instance starting error")
            raise

        log.info("AWS EC2 instance {id} is started", id=instance_id)
        return instance_id

    async def wait_until_running(self, instance_id: str) -> None:
        """Block until EC2 reports the instance as running.

        Uses the ``instance_running`` waiter with its default delay and
        attempt limits.
        """
        try:
            async with self.ec2() as ec2:
                waiter = ec2.get_waiter(INSTANCE_RUNNING_WAITER)
                await waiter.wait(InstanceIds=[instance_id])
        except Exception:
            log.error("AWS EC2 instance {id} initialization error", id=instance_id)
            raise

        log.info("AWS EC2 instance {id} is up and running", id=instance_id)

    async def terminate(self, instance_id: str | None = None) -> None:
        """Request termination; returns once EC2 accepts the request.

        Args:
            instance_id: Instance to terminate. Defaults to the configured
                ``ec2_instance_id``.
        """
        instance_id = instance_id or self.config.ec2_instance_id

        try:
            async with self.ec2() as ec2:
                await ec2.terminate_instances(InstanceIds=[instance_id])
        except Exception:
            log.error("AWS EC2 instance {id} termination error", id=instance_id)
            raise

        log.info("AWS EC2 instance {id} is terminated", id=instance_id)


__all__ = ["InstanceLifecycle", "SPOT_MARKET_OPTIONS"]
