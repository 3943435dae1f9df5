"""Application layer - Interceptor chains and proxies."""

import functools
import inspect
import itertools
import logging
import threading
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from woven_di.domain import (
    BindingError,
    IInterceptor,
    InterceptionFailure,
    InterceptorBinding,
    InvocationState,
)
from woven_di.domain.exceptions import describe

if TYPE_CHECKING:
    from woven_di.domain import IKernel

logger = logging.getLogger(__name__)


class Invocation:
    """A reified method call travelling through an interceptor chain.

    Interceptors receive the same invocation object. Each may inspect or
    change ``arguments``, call ``proceed()`` once to run the rest of the
    chain, and read or overwrite ``return_value``.

    Attributes:
        target: The real (unproxied) instance.
        method_name: Name of the intercepted method.
        method: The bound method eventually called.
        arguments: Positional arguments, mutable by interceptors.
        keyword_arguments: Keyword arguments, mutable by interceptors.
        return_value: Result slot; ``None`` until set.
        exception: Last exception that surfaced through ``proceed()``.
    """

    def __init__(
        self,
        target: Any,
        method_name: str,
        method: Callable[..., Any],
        arguments: Sequence[Any] = (),
        keyword_arguments: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.target = target
        self.method_name = method_name
        self.method = method
        self.arguments = list(arguments)
        self.keyword_arguments = dict(keyword_arguments or {})
        self.return_value: Any = None
        self.exception: Optional[BaseException] = None
        self._chain: List[IInterceptor] = []
        self._state = InvocationState.PENDING
        self._current = -1
        self._active: set = set()
        self._proceeded: set = set()

    @property
    def state(self) -> InvocationState:
        return self._state

    @property
    def current_link(self) -> int:
        """Index of the interceptor currently in control, -1 before the chain starts."""
        return self._current

    def proceed(self) -> Any:
        """Run the next interceptor, or the real method at the end of the chain.

        Returns:
            The invocation's return value after the downstream call.

        Raises:
            InterceptionFailure: If the calling interceptor already proceeded or already returned.
        """
        link = self._current
        if link not in self._active:
            raise InterceptionFailure(f"proceed() called on '{self.method_name}' outside of an active interceptor")
        if link in self._proceeded:
            raise InterceptionFailure(
                f"{type(self._chain[link]).__name__} called proceed() more than once on '{self.method_name}'"
            )
        self._proceeded.add(link)

        try:
            if link + 1 < len(self._chain):
                self._enter(link + 1)
            else:
                self.return_value = self.method(*self.arguments, **self.keyword_arguments)
        except Exception as exc:
            self.exception = exc
            raise
        finally:
            self._current = link
        return self.return_value

    def _start(self, chain: Sequence[IInterceptor]) -> None:
        if self._state != InvocationState.PENDING:
            raise InterceptionFailure(f"Invocation of '{self.method_name}' has already run")
        self._chain = list(chain)

    def _enter(self, index: int) -> None:
        self._current = index
        self._active.add(index)
        self._state = InvocationState.IN_LINK
        try:
            self._chain[index].intercept(self)
        finally:
            self._active.discard(index)

    def _finish(self, state: InvocationState) -> None:
        self._state = state
        self._current = -1

    def __repr__(self) -> str:
        return f"<Invocation {type(self.target).__name__}.{self.method_name} state={self._state}>"


class ProxyInvoker:
    """Drives an invocation through an ordered chain of interceptors."""

    def invoke(self, chain: Sequence[IInterceptor], invocation: Invocation) -> Any:
        """Execute the chain for one call.

        Args:
            chain: Interceptors in execution order.
            invocation: The call to run.

        Returns:
            The final ``return_value`` of the invocation.

        Raises:
            Exception: Whatever escapes the first interceptor, unchanged.
        """
        invocation._start(chain)
        try:
            if chain:
                invocation._enter(0)
            else:
                invocation.return_value = invocation.method(*invocation.arguments, **invocation.keyword_arguments)
        except Exception:
            invocation._finish(InvocationState.FAULTED)
            raise
        invocation._finish(InvocationState.COMPLETED)
        return invocation.return_value


class InterceptorChainBuilder:
    """Collects interceptor declarations per contract and builds ordered chains.

    Chains are cached per contract once built; declaring another interceptor
    for the contract invalidates its cached chain.

    Attributes:
        _bindings: Contract to interceptor declarations.
        _chains: Contract to built chain.
    """

    def __init__(self) -> None:
        self._bindings: Dict[Any, List[InterceptorBinding]] = defaultdict(list)
        self._chains: Dict[Any, List[IInterceptor]] = {}
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    def add(self, contract: Any, interceptor: Any, order: int = 0) -> InterceptorBinding:
        """Declare an interceptor for a contract.

        Args:
            contract: The contract whose instances are intercepted.
            interceptor: An interceptor instance, or a type resolved through the kernel.
            order: Position key; lower runs first, ties run in declaration order.

        Raises:
            BindingError: If ``interceptor`` has no ``intercept`` method.
        """
        if not callable(getattr(interceptor, "intercept", None)):
            raise BindingError(f"{describe(interceptor)} is not an interceptor: it has no intercept() method")

        binding = InterceptorBinding(contract=contract, interceptor=interceptor, order=order, sequence=next(self._sequence))
        with self._lock:
            self._bindings[contract].append(binding)
            self._chains.pop(contract, None)
        logger.debug("Declared interceptor %s for %s", describe(interceptor), describe(contract))
        return binding

    def reorder(self, binding: InterceptorBinding, order: int) -> None:
        """Change the order key of a declaration."""
        with self._lock:
            binding.order = order
            self._chains.pop(binding.contract, None)

    def has_interceptors(self, contract: Any) -> bool:
        with self._lock:
            return bool(self._bindings.get(contract))

    def build_chain(self, contract: Any, kernel: Optional["IKernel"] = None) -> List[IInterceptor]:
        """Return the interceptors of a contract sorted by (order, declaration).

        Interceptor types are resolved through ``kernel`` when one is given,
        and instantiated directly otherwise.
        """
        chain = self._chains.get(contract)
        if chain is not None:
            return chain

        with self._lock:
            declarations = sorted(self._bindings.get(contract, ()), key=lambda binding: binding.sort_key)
        chain = [self._materialize(declaration.interceptor, kernel) for declaration in declarations]

        with self._lock:
            chain = self._chains.setdefault(contract, chain)
        if chain:
            logger.debug(
                "Built interceptor chain for %s: %s",
                describe(contract),
                ", ".join(type(link).__name__ for link in chain),
            )
        return chain

    def copy(self) -> "InterceptorChainBuilder":
        clone = InterceptorChainBuilder()
        with self._lock:
            for contract, declarations in self._bindings.items():
                clone._bindings[contract] = [declaration.model_copy() for declaration in declarations]
        clone._sequence = itertools.count(sum(len(d) for d in clone._bindings.values()))
        return clone

    def _materialize(self, interceptor: Any, kernel: Optional["IKernel"]) -> IInterceptor:
        if not inspect.isclass(interceptor):
            return interceptor
        if kernel is not None:
            return kernel.get(interceptor)
        return interceptor()


class InterceptionProxy:
    """Stands in for a resolved instance and routes its public methods through a chain.

    Attribute reads and writes are forwarded to the target. Public callables
    (names not starting with an underscore) are wrapped so that each call
    builds an ``Invocation`` and runs it through the ``ProxyInvoker``.
    ``isinstance`` checks see the target's class.
    """

    __slots__ = ("_target", "_chain", "_invoker")

    def __init__(self, target: Any, chain: Sequence[IInterceptor], invoker: ProxyInvoker) -> None:
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_chain", list(chain))
        object.__setattr__(self, "_invoker", invoker)

    @property
    def __class__(self):  # type: ignore[override]
        return type(object.__getattribute__(self, "_target"))

    @property
    def __wrapped__(self) -> Any:
        return object.__getattribute__(self, "_target")

    def __getattr__(self, name: str) -> Any:
        target = object.__getattribute__(self, "_target")
        attribute = getattr(target, name)
        if name.startswith("_") or inspect.isclass(attribute) or not callable(attribute):
            return attribute

        chain = object.__getattribute__(self, "_chain")
        invoker = object.__getattribute__(self, "_invoker")

        @functools.wraps(attribute)
        def intercepted(*args: Any, **kwargs: Any) -> Any:
            invocation = Invocation(target, name, attribute, args, kwargs)
            return invoker.invoke(chain, invocation)

        return intercepted

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(object.__getattribute__(self, "_target"), name, value)

    def __delattr__(self, name: str) -> None:
        delattr(object.__getattribute__(self, "_target"), name)

    def __repr__(self) -> str:
        return f"<InterceptionProxy of {object.__getattribute__(self, '_target')!r}>"


def unwrap_proxy(instance: Any) -> Any:
    """Return the real instance behind an interception proxy, or the instance itself."""
    if type(instance) is InterceptionProxy:
        return object.__getattribute__(instance, "_target")
    return instance
