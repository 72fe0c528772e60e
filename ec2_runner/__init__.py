"""ec2-runner: ephemeral EC2 instances as self-hosted GitHub Actions runners.

Example:
    import asyncio
    from injector import Injector

    from ec2_runner import InstanceLifecycle, RunnerModule, load_config

    config = load_config()
    lifecycle = Injector([RunnerModule(config)]).get(InstanceLifecycle)

    instance_id = asyncio.run(lifecycle.start("ci-xyz", token))
"""

from ec2_runner.aws import EC2ClientFactory, InstanceLifecycle, RunnerModule
from ec2_runner.bootstrap import user_data_script
from ec2_runner.config import ConfigError, RunnerConfig, load_config
from ec2_runner.logging import LogConfig, setup_logging, teardown_logging

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "EC2ClientFactory",
    "InstanceLifecycle",
    "LogConfig",
    "RunnerConfig",
    "RunnerModule",
    "load_config",
    "setup_logging",
    "teardown_logging",
    "user_data_script",
]
