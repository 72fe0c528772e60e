"""AWS EC2 lifecycle for the ephemeral runner.

Example:
    from injector import Injector
    from ec2_runner.aws import InstanceLifecycle, RunnerModule

    lifecycle = Injector([RunnerModule(config)]).get(InstanceLifecycle)
    instance_id = await lifecycle.start(label, token)
    await lifecycle.wait_until_running(instance_id)
"""

from ec2_runner.aws.clients import EC2ClientFactory, RunnerModule
from ec2_runner.aws.lifecycle import InstanceLifecycle

__all__ = ["EC2ClientFactory", "InstanceLifecycle", "RunnerModule"]
