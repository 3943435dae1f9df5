"""Application layer - Fluent configuration syntax."""

import inspect
from typing import TYPE_CHECKING, Any, Callable, Generic, List, NoReturn, Optional, Type, TypeVar

from woven_di.application.introspection import conforms_to
from woven_di.domain import (
    Binding,
    BindingError,
    InterceptorBinding,
    ResolutionContext,
    Scope,
    Strategy,
    TypeDescriptor,
)
from woven_di.domain.exceptions import describe

if TYPE_CHECKING:
    from woven_di.application.kernel import Kernel

T = TypeVar("T")


class BindingBuilder(Generic[T]):
    """Configures a binding that is already registered with the kernel.

    Every modifier returns the builder so calls can be chained.

    Example:
        >>> kernel.bind(Ingredient).to(Steak).named("steak").in_singleton_scope()
        >>> kernel.bind(Course).to_self().with_constructor_argument("sauce", lambda ctx: ctx.kernel.get(Sauce))
    """

    def __init__(self, kernel: "Kernel", binding: Binding) -> None:
        self._kernel = kernel
        self._binding = binding

    @property
    def binding(self) -> Binding:
        return self._binding

    def to(self, implementation: Type[T]) -> "BindingBuilder[T]":
        """Construct ``implementation`` whenever the contract is requested.

        Raises:
            BindingError: If ``implementation`` is not a class that satisfies the contract.
        """
        if not inspect.isclass(implementation):
            self._reject(f"Cannot bind {describe(self._binding.contract)} to {implementation!r}: not a class")
        if not conforms_to(implementation, self._binding.contract):
            self._reject(
                f"Implementation {implementation.__name__} must be a subclass of {describe(self._binding.contract)}"
            )
        self._binding.strategy = Strategy.TYPE
        self._binding.implementation = implementation
        return self

    def to_self(self) -> "BindingBuilder[T]":
        """Construct the contract itself."""
        return self.to(self._binding.contract)

    def to_constant(self, value: T) -> "BindingBuilder[T]":
        """Always return ``value``, unchanged and never disposed.

        Raises:
            BindingError: If ``value`` is not an instance of a class contract.
        """
        contract = self._binding.contract
        if inspect.isclass(contract):
            try:
                valid = isinstance(value, contract)
            except TypeError:
                valid = True
            if not valid:
                self._reject(f"Constant {value!r} is not an instance of {describe(contract)}")
        self._binding.strategy = Strategy.CONSTANT
        self._binding.constant = value
        return self

    def to_method(self, factory: Callable[[ResolutionContext], T]) -> "BindingBuilder[T]":
        """Build instances by calling ``factory`` with the resolution context."""
        if not callable(factory):
            self._reject(f"Factory for {describe(self._binding.contract)} must be callable")
        self._binding.strategy = Strategy.FACTORY
        self._binding.factory = factory
        return self

    def named(self, name: str) -> "BindingBuilder[T]":
        self._binding.name = name
        return self

    def when(self, condition: Callable[[ResolutionContext], bool]) -> "BindingBuilder[T]":
        """Only match contexts for which ``condition`` returns True."""
        self._binding.condition = condition
        return self

    def when_injected_into(self, owner: type) -> "BindingBuilder[T]":
        """Only match when filling a member of ``owner`` (or a subclass)."""

        def injected_into(context: ResolutionContext) -> bool:
            target = context.target
            return target is not None and target.owner is not None and issubclass(target.owner, owner)

        return self.when(injected_into)

    def with_constructor_argument(self, name: str, value: Any) -> "BindingBuilder[T]":
        """Supply the constructor parameter ``name``.

        ``value`` is used verbatim unless it is a function, method or partial,
        in which case it is called with the resolution context.
        """
        self._binding.constructor_arguments[name] = value
        return self

    def with_property_value(self, name: str, value: Any) -> "BindingBuilder[T]":
        """Assign attribute ``name`` after construction (value or provider)."""
        self._binding.property_values[name] = value
        return self

    def in_singleton_scope(self) -> "BindingBuilder[T]":
        return self._scoped(Scope.SINGLETON)

    def in_transient_scope(self) -> "BindingBuilder[T]":
        return self._scoped(Scope.TRANSIENT)

    def in_scope(self, scope_callback: Callable[[ResolutionContext], Any]) -> "BindingBuilder[T]":
        """Cache one instance per object returned by ``scope_callback``.

        A callback returning None makes that resolution transient.
        """
        return self._scoped(Scope.CUSTOM, scope_callback)

    def in_named_scope(self, name: str) -> "BindingBuilder[T]":
        """Cache one instance in the scope called ``name``; see ``Kernel.teardown_scope``."""
        return self._scoped(Scope.CUSTOM, lambda context: name)

    def on_activation(self, action: Callable[[T], Any]) -> "BindingBuilder[T]":
        self._binding.activation_actions.append(action)
        return self

    def on_deactivation(self, action: Callable[[T], Any]) -> "BindingBuilder[T]":
        self._binding.deactivation_actions.append(action)
        return self

    def intercept(self) -> "InterceptionBuilder":
        """Start declaring interceptors around the contract's methods."""
        return InterceptionBuilder(self._kernel, self._binding.contract)

    def _scoped(self, scope: Scope, scope_callback: Optional[Callable[..., Any]] = None) -> "BindingBuilder[T]":
        self._binding.scope = scope
        self._binding.scope_callback = scope_callback
        return self

    def _reject(self, message: str) -> NoReturn:
        """Withdraw the half-configured binding from the kernel and raise."""
        if self._binding.strategy is None:
            self._kernel.registry.unregister(self._binding)
        raise BindingError(message)


class InterceptionBuilder:
    """Declares interceptors for a contract.

    Example:
        >>> kernel.bind(ProductService).to(DefaultProductService).intercept().with_interceptor(audit).in_order(1)
    """

    def __init__(self, kernel: "Kernel", contract: Any) -> None:
        self._kernel = kernel
        self._contract = contract
        self._last: Optional[InterceptorBinding] = None

    def with_interceptor(self, interceptor: Any) -> "InterceptionBuilder":
        """Add an interceptor instance, or a type resolved through the kernel."""
        self._last = self._kernel.interceptors.add(self._contract, interceptor)
        return self

    def in_order(self, order: int) -> "InterceptionBuilder":
        """Set the order key of the interceptor added last."""
        if self._last is None:
            raise BindingError("in_order() must follow with_interceptor()")
        self._kernel.interceptors.reorder(self._last, order)
        return self


class ConventionBuilder:
    """Binds the implementations found by a type source to a single contract.

    Example:
        >>> kernel.scan(menu).inherited_from(Ingredient).where(lambda t: t.name.startswith("Sauce")).bind_to_contract()
    """

    def __init__(self, kernel: "Kernel", origin: Any) -> None:
        self._kernel = kernel
        self._origin = origin
        self._contract: Any = None
        self._predicates: List[Callable[[TypeDescriptor], bool]] = []
        self._scope = kernel.settings.default_scope

    def inherited_from(self, contract: Any) -> "ConventionBuilder":
        self._contract = contract
        return self

    def where(self, predicate: Callable[[TypeDescriptor], bool]) -> "ConventionBuilder":
        """Keep only candidates accepted by ``predicate``; several calls combine."""
        self._predicates.append(predicate)
        return self

    def in_singleton_scope(self) -> "ConventionBuilder":
        self._scope = Scope.SINGLETON
        return self

    def bind_to_contract(self) -> List[Binding]:
        """Register one binding per selected type.

        Raises:
            BindingError: If no contract was given or the kernel has no type source.
        """
        if self._contract is None:
            raise BindingError("inherited_from() must be called before bind_to_contract()")
        source = self._kernel.type_source
        if source is None:
            raise BindingError("The kernel has no type source to scan")

        candidates = source.list_candidate_types(self._origin)
        scope = self._scope

        def accepted(descriptor: TypeDescriptor) -> bool:
            return all(predicate(descriptor) for predicate in self._predicates)

        def configure(binding: Binding) -> None:
            binding.scope = scope

        return self._kernel.registry.register_conventions(candidates, self._contract, accepted, configure)
