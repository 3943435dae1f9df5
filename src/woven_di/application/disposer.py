"""Application layer - Tracking and disposal of scope-owned instances."""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from woven_di.application.interception import unwrap_proxy
from woven_di.domain import CacheEntry

logger = logging.getLogger(__name__)


def disposal_capability(instance: Any) -> Optional[Callable[[], Any]]:
    """Return the callable that releases an instance's resources, if it has one.

    ``dispose()`` is preferred; ``close()`` is accepted as a fallback.
    """
    for attribute in ("dispose", "close"):
        candidate = getattr(instance, attribute, None)
        if callable(candidate):
            return candidate
    return None


class Disposer:
    """Tracks instances owned by non-transient scopes and disposes them.

    Instances are tracked by identity. Transient instances are never handed
    to the disposer, so it never touches them.

    Attributes:
        _tracked: Identity of the cached instance to its cache entry.
    """

    def __init__(self) -> None:
        self._tracked: Dict[int, CacheEntry] = {}
        self._lock = threading.Lock()

    def track(self, entry: CacheEntry) -> None:
        """Start tracking a freshly cached instance."""
        with self._lock:
            self._tracked[id(entry.instance)] = entry

    def untrack(self, instance: Any) -> Optional[CacheEntry]:
        """Stop tracking an instance and return its entry, if it was tracked."""
        with self._lock:
            entry = self._tracked.get(id(instance))
            if entry is not None and entry.instance is instance:
                del self._tracked[id(instance)]
                return entry
            return None

    def owner_of(self, instance: Any) -> Optional[CacheEntry]:
        """Return the cache entry owning ``instance``, or None for untracked instances."""
        with self._lock:
            entry = self._tracked.get(id(instance))
        if entry is not None and entry.instance is instance:
            return entry
        return None

    def dispose(self, entry: CacheEntry) -> None:
        """Run deactivation callbacks and the disposal capability of an entry's instance.

        Interception proxies are unwrapped first, so disposal never goes
        through the interceptor chain.

        Raises:
            Exception: Whatever the callbacks or the disposal capability raise.
        """
        target = unwrap_proxy(entry.instance)
        for action in entry.binding.deactivation_actions:
            action(target)
        capability = disposal_capability(target)
        if capability is not None:
            logger.debug("Disposing %s owned by scope %r", type(target).__name__, entry.scope_key)
            capability()

    def tracked(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._tracked.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracked)
