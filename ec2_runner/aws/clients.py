"""AWS client factories with dependency injection.

Provides typed client factories that can be injected into components.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any

import aioboto3
from injector import Module, provider, singleton

from ..config import RunnerConfig

if TYPE_CHECKING:
    from types_aiobotocore_ec2 import EC2Client


# =============================================================================
# Client Type
# =============================================================================

type Client[T] = Callable[[], AbstractAsyncContextManager[T]]
"""Factory that returns an async context manager for a client."""


class EC2ClientFactory:
    """Wrapper for EC2 client factory (a unique type for DI)."""

    def __init__(self, factory: Client[Any]) -> None:
        self._factory = factory

    def __call__(self) -> AbstractAsyncContextManager[EC2Client]:
        return self._factory()


# =============================================================================
# Runner Module
# =============================================================================


class RunnerModule(Module):
    """DI module that binds the runner configuration and the EC2 client factory.

    Usage:
        >>> from injector import Injector
        >>> from ec2_runner.aws import InstanceLifecycle, RunnerModule
        >>>
        >>> injector = Injector([RunnerModule(config)])
        >>> lifecycle = injector.get(InstanceLifecycle)
        >>> instance_id = await lifecycle.start(label, token)
    """

    def __init__(self, config: RunnerConfig) -> None:
        self._config = config

    @singleton
    @provider
    def provide_config(self) -> RunnerConfig:
        return self._config

    @singleton
    @provider
    def provide_session(self) -> aioboto3.Session:
        """Provide singleton aioboto3 session."""
        return aioboto3.Session()

    @singleton
    @provider
    def provide_ec2(self, session: aioboto3.Session, config: RunnerConfig) -> EC2ClientFactory:
        """Provide EC2 client factory."""
        @asynccontextmanager
        async def factory() -> AsyncIterator[Any]:
            async with session.client("ec2", region_name=config.region) as client:
                yield client
        return EC2ClientFactory(factory)


__all__ = [
    "Client",
    "EC2ClientFactory",
    "RunnerModule",
]
