"""Application layer - Scope-based caching of instances."""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from woven_di.application.disposer import Disposer
from woven_di.domain import (
    Binding,
    CacheEntry,
    DisposalError,
    IScopeManager,
    ResolutionContext,
    Scope,
)

logger = logging.getLogger(__name__)


class _KeyLock:
    """Creation lock of one cache key and the number of threads holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class ScopeManager(IScopeManager):
    """Manages instance lifetimes for transient, singleton and custom scopes.

    Non-transient instances are cached under ``(binding_id, scope_key)``.
    Each cache key has its own creation lock, so two concurrent resolutions
    of the same scoped binding never construct two instances while
    unrelated resolutions do not wait on each other. Teardown takes the same
    per-key lock before destroying an entry. The cache itself is only read
    and written under ``_guard``, and a key lock is discarded once no thread
    holds or awaits it and its key is no longer cached.

    Attributes:
        _root_scope: Scope key used for singletons (the owning kernel).
        _disposer: Tracks cached instances for release and teardown.
        _cache: Live scoped instances.
        _key_locks: Creation lock per cache key.
        _guard: Protects ``_cache`` and ``_key_locks``.
    """

    def __init__(self, root_scope: Any, disposer: Optional[Disposer] = None) -> None:
        """Initialize the scope manager.

        Args:
            root_scope: Identity of the singleton scope, usually the kernel.
            disposer: Optional disposer to share; a new one is created otherwise.
        """
        self._root_scope = root_scope
        self._disposer = disposer if disposer is not None else Disposer()
        self._cache: Dict[Tuple[int, Any], CacheEntry] = {}
        self._key_locks: Dict[Tuple[int, Any], _KeyLock] = {}
        self._guard = threading.Lock()

    @property
    def root_scope(self) -> Any:
        return self._root_scope

    def scope_key_for(self, binding: Binding, context: ResolutionContext) -> Optional[Any]:
        """Compute the scope key of a resolution; None means transient."""
        if binding.scope == Scope.SINGLETON:
            return self._root_scope
        if binding.scope == Scope.CUSTOM and binding.scope_callback is not None:
            return binding.scope_callback(context)
        return None

    def get_or_create(self, binding: Binding, context: ResolutionContext, factory: Callable[[], Any]) -> Any:
        """Get the instance cached for the binding's scope or create one.

        Args:
            binding: The binding being activated.
            context: The current resolution context.
            factory: Builds a new instance on cache miss.

        Returns:
            Instance according to scope rules:
            - Transient: Always a new instance, never tracked
            - Singleton: The kernel-wide cached instance
            - Custom: The instance cached for the scope key returned by the binding's callback
        """
        scope_key = self.scope_key_for(binding, context)
        if scope_key is None:
            return factory()

        cache_key = (binding.binding_id, scope_key)
        with self._locked(cache_key):
            with self._guard:
                entry = self._cache.get(cache_key)
            if entry is not None:
                logger.debug("Scope cache hit for %s in scope %r", binding.describe(), scope_key)
                return entry.instance

            instance = factory()
            entry = CacheEntry(binding=binding, scope_key=scope_key, instance=instance)
            with self._guard:
                self._cache[cache_key] = entry
            self._disposer.track(entry)
            logger.debug("Cached new instance of %s in scope %r", binding.describe(), scope_key)
            return instance

    def release(self, instance: Any) -> bool:
        """Dispose and forget a scoped instance.

        Args:
            instance: An instance previously returned by the kernel.

        Returns:
            True if the instance was owned by a scope and has been disposed,
            False for transient or unknown instances.
        """
        entry = self._disposer.owner_of(instance)
        if entry is None:
            return False

        with self._locked(entry.cache_key):
            with self._guard:
                if self._cache.get(entry.cache_key) is not entry:
                    return False
                del self._cache[entry.cache_key]
            if self._disposer.untrack(instance) is None:
                return False
            self._disposer.dispose(entry)
        return True

    def teardown_scope(self, scope_key: Any) -> None:
        """Dispose every instance cached under a scope.

        Every disposal is attempted even if some of them fail.

        Raises:
            DisposalError: If one or more disposals failed.
        """
        failures = self._teardown(scope_key)
        if failures:
            raise DisposalError(failures)

    def teardown_all(self) -> None:
        """Dispose every cached instance of every scope.

        Raises:
            DisposalError: If one or more disposals failed.
        """
        with self._guard:
            scope_keys = []
            for _, scope_key in self._cache:
                if scope_key not in scope_keys:
                    scope_keys.append(scope_key)

        failures: List[Tuple[Any, BaseException]] = []
        for scope_key in scope_keys:
            failures.extend(self._teardown(scope_key))
        if failures:
            raise DisposalError(failures)

    def is_cached(self, instance: Any) -> bool:
        return self._disposer.owner_of(instance) is not None

    def cached_instances(self, scope_key: Any) -> List[Any]:
        with self._guard:
            return [entry.instance for key, entry in self._cache.items() if key[1] == scope_key]

    def _teardown(self, scope_key: Any) -> List[Tuple[Any, BaseException]]:
        with self._guard:
            keys = [key for key in self._cache if key[1] == scope_key]

        failures: List[Tuple[Any, BaseException]] = []
        for key in keys:
            with self._locked(key):
                with self._guard:
                    entry = self._cache.pop(key, None)
                if entry is None:
                    continue
                # an instance cached under several keys is disposed with the first of them
                if self._disposer.untrack(entry.instance) is None:
                    continue
                try:
                    self._disposer.dispose(entry)
                except Exception as exc:
                    logger.warning("Failed to dispose %s: %s", entry.binding.describe(), exc)
                    failures.append((entry.instance, exc))

        logger.debug("Tore down scope %r (%d instance(s))", scope_key, len(keys))
        return failures

    @contextmanager
    def _locked(self, cache_key: Tuple[int, Any]) -> Iterator[None]:
        with self._guard:
            key_lock = self._key_locks.get(cache_key)
            if key_lock is None:
                key_lock = self._key_locks[cache_key] = _KeyLock()
            key_lock.users += 1
        try:
            with key_lock.lock:
                yield
        finally:
            with self._guard:
                key_lock.users -= 1
                if key_lock.users == 0 and cache_key not in self._cache:
                    del self._key_locks[cache_key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._cache)
