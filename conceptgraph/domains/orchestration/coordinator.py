"""
Build Coordinator - At most one graph build per process.

A request for the build that is already running joins it and receives the
same result. A request for a different build waits until the running one
finishes, then starts its own.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, TypeVar

from conceptgraph.config.errors import BuildCancelledError

logger = logging.getLogger(__name__)

__all__ = ["BuildCoordinator"]

T = TypeVar("T")


class BuildCoordinator:
    """
    Process-wide guard around graph builds.

    State is held in a thread lock and concurrent futures, so callers on
    different event loops or threads share the same guard.

    Example:
        >>> coordinator = BuildCoordinator.instance()
        >>> report = await coordinator.run("data/graph-cache", service.build_now)
    """

    _instance: ClassVar[BuildCoordinator | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: tuple[str, concurrent.futures.Future[Any]] | None = None

    @classmethod
    def instance(cls) -> BuildCoordinator:
        """The shared coordinator for this process."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @property
    def running_key(self) -> str | None:
        with self._lock:
            return self._current[0] if self._current else None

    async def run(self, key: str, build: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``build`` under the guard.

        Args:
            key: Identity of the build target (e.g. the resolved cache directory)
            build: Coroutine factory performing the build

        Returns:
            The build's result, possibly shared with a concurrent caller

        Raises:
            Whatever the (possibly shared) build raised
        """
        while True:
            with self._lock:
                current = self._current
                if current is None:
                    future: concurrent.futures.Future[Any] = concurrent.futures.Future()
                    self._current = (key, future)
                    break

            running_key, running = current
            waiter = asyncio.wrap_future(running)
            if running_key == key:
                logger.info("Joining in-flight build: %s", key)
                return await waiter

            logger.info("Waiting for build %s before starting %s", running_key, key)
            await asyncio.wait({waiter})
            if not waiter.cancelled():
                # Outcome belongs to the other caller
                waiter.exception()

        logger.debug("Starting build: %s", key)
        try:
            result = await build()
        except asyncio.CancelledError:
            future.set_exception(BuildCancelledError("Build task was cancelled", {"key": key}))
            raise
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._current = None
