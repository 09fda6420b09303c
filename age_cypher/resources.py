"""Explicit disposal tracking for connections and cursors."""

import inspect
import logging
import threading
from typing import Any, Dict, List, Tuple, TypeVar

from age_cypher.errors import ResourceReleaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceScope:
    """Tracks acquired resources so they can be closed in one call.

    Anything with a ``close()`` method can be registered; ``close()`` may be a
    plain method or a coroutine function. Resources are tracked by identity.
    Nothing is closed automatically: a scope that is never released (either
    via ``release_all()`` or by leaving ``async with scope:``) leaks whatever
    it holds.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._resources: Dict[int, Any] = {}

    def register(self, resource: T, *, key: Any = None) -> T:
        """Track ``resource``; ``key`` is the object membership checks match on."""
        with self._lock:
            self._resources[id(resource if key is None else key)] = resource
        return resource

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)

    def __contains__(self, item: Any) -> bool:
        with self._lock:
            return id(item) in self._resources

    async def release_all(self) -> None:
        """Close every registered resource once. Calling it again is a no-op."""
        with self._lock:
            pending = list(self._resources.items())
            self._resources.clear()

        failures: List[Tuple[Any, BaseException]] = []
        try:
            while pending:
                resource = pending[0][1]
                try:
                    result = resource.close()
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    logger.warning("Failed to close %r: %s", resource, exc)
                    failures.append((resource, exc))
                else:
                    logger.debug("Released %r", resource)
                pending.pop(0)
        finally:
            # interrupted (e.g. cancelled): keep what was not closed for the next call
            if pending:
                with self._lock:
                    self._resources.update(pending)

        if failures:
            raise ResourceReleaseError(failures) from failures[0][1]

    async def __aenter__(self) -> "ResourceScope":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.release_all()
