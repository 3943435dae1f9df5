"""Application layer - Binding registry and binding selection."""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence

from woven_di.domain import (
    AmbiguousBinding,
    Binding,
    NoBindingFound,
    ResolutionContext,
    Strategy,
    TypeDescriptor,
)

logger = logging.getLogger(__name__)


class BindingRegistry:
    """Stores bindings per contract and selects the one applicable to a context.

    Registration and lookup are guarded by a single registry-wide lock.
    Conditions are evaluated on a snapshot taken under the lock, so a
    condition that resolves other contracts never runs while it is held.

    Attributes:
        _bindings: Contract to bindings, in registration order.
        _lock: Registry-wide lock.
    """

    def __init__(self) -> None:
        self._bindings: Dict[Any, List[Binding]] = defaultdict(list)
        self._lock = threading.RLock()

    def register(self, binding: Binding) -> Binding:
        """Append a binding for its contract.

        Args:
            binding: The binding to store.

        Returns:
            The same binding, for chaining.
        """
        with self._lock:
            self._bindings[binding.contract].append(binding)
        logger.debug("Registered binding %s", binding.describe())
        return binding

    def remove(self, contract: Any) -> List[Binding]:
        """Remove every binding of a contract.

        Returns:
            The removed bindings.
        """
        with self._lock:
            removed = self._bindings.pop(contract, [])
        if removed:
            logger.debug("Removed %d binding(s) for %r", len(removed), contract)
        return removed

    def unregister(self, binding: Binding) -> bool:
        """Remove a single binding, matched by identity.

        Returns:
            True if the binding was registered.
        """
        with self._lock:
            bindings = self._bindings.get(binding.contract)
            if not bindings:
                return False
            for index, candidate in enumerate(bindings):
                if candidate is binding:
                    del bindings[index]
                    break
            else:
                return False
            if not bindings:
                del self._bindings[binding.contract]
        logger.debug("Unregistered binding %s", binding.describe())
        return True

    def remove_implicit(self, contract: Any) -> None:
        """Drop self-bindings created on demand, once an explicit binding takes over."""
        with self._lock:
            bindings = self._bindings.get(contract)
            if bindings:
                bindings[:] = [binding for binding in bindings if not binding.is_implicit]

    def has(self, contract: Any) -> bool:
        with self._lock:
            return bool(self._bindings.get(contract))

    def bindings_for(self, contract: Any) -> List[Binding]:
        """Snapshot of the bindings registered for a contract."""
        with self._lock:
            return list(self._bindings.get(contract, ()))

    def lookup(self, context: ResolutionContext) -> Binding:
        """Select exactly one binding for a resolution context.

        Bindings are filtered by the requested name and by their conditions.
        When conditional bindings survive, unconditioned ones are discarded:
        a matching condition is what disambiguates them.

        Args:
            context: The resolution context.

        Returns:
            The single applicable binding.

        Raises:
            NoBindingFound: If nothing matches.
            AmbiguousBinding: If more than one binding matches.
        """
        matches = self.lookup_all(context)
        conditional = [binding for binding in matches if binding.is_conditional]
        if conditional:
            matches = conditional

        if not matches:
            raise NoBindingFound(context.contract, context.name, context.request_chain())
        if len(matches) > 1:
            raise AmbiguousBinding(context.contract, [binding.describe() for binding in matches], context.name)
        return matches[0]

    def lookup_all(self, context: ResolutionContext) -> List[Binding]:
        """Return every configured binding matching the context, in registration order.

        Bindings whose target has not been set yet are skipped.
        """
        return [
            binding
            for binding in self.bindings_for(context.contract)
            if binding.strategy is not None and binding.matches(context)
        ]

    def register_conventions(
        self,
        candidates: Sequence[TypeDescriptor],
        contract: Any,
        predicate: Optional[Callable[[TypeDescriptor], bool]] = None,
        configure: Optional[Callable[[Binding], None]] = None,
    ) -> List[Binding]:
        """Register one binding per candidate type implementing ``contract``.

        Args:
            candidates: Types offered by a type source.
            contract: The single contract every surviving type is bound to.
            predicate: Optional extra filter over the descriptors.
            configure: Optional callback applied to each new binding before registration.

        Returns:
            The registered bindings, in candidate order.
        """
        registered = []
        for descriptor in candidates:
            if not descriptor.implements(contract):
                continue
            if predicate is not None and not predicate(descriptor):
                continue
            binding = Binding(contract=contract, implementation=descriptor.type, strategy=Strategy.TYPE)
            if configure is not None:
                configure(binding)
            registered.append(self.register(binding))
        logger.debug("Convention scan bound %d type(s) to %r", len(registered), contract)
        return registered

    def copy(self) -> "BindingRegistry":
        """Create an independent registry holding the same bindings."""
        clone = BindingRegistry()
        with self._lock:
            for contract, bindings in self._bindings.items():
                clone._bindings[contract] = list(bindings)
        return clone

    def clear(self) -> None:
        with self._lock:
            self._bindings.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bindings) for bindings in self._bindings.values())
