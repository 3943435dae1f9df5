import inspect
import itertools
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from woven_di.domain.enums import Scope, Strategy, TargetKind
from woven_di.domain.exceptions import CyclicDependency, describe

if TYPE_CHECKING:
    from woven_di.domain.interfaces import IKernel

_binding_ids = itertools.count(1)


class KernelSettings(BaseModel):
    """Kernel-wide configuration.

    Attributes:
        implicit_self_binding: Resolve unbound concrete classes by binding them to themselves.
        inject_annotated_members: Inject members reported by the member source after construction.
        default_scope: Scope given to bindings that do not choose one.
    """

    model_config = ConfigDict(frozen=True)

    implicit_self_binding: bool = Field(default=True, description="Auto-bind unbound concrete classes.")
    inject_annotated_members: bool = Field(default=True, description="Inject members marked with Inject.")
    default_scope: Scope = Field(default=Scope.TRANSIENT, description="Scope of bindings without one.")

    @field_validator("default_scope")
    @classmethod
    def _check_default_scope(cls, value: Scope) -> Scope:
        if value == Scope.CUSTOM:
            raise ValueError("default_scope must be transient or singleton")
        return value


class Binding(BaseModel):
    """A rule mapping a contract to a construction strategy and a scope.

    Bindings are mutable while their fluent builder configures them; the
    registry owns them afterwards.

    Attributes:
        binding_id: Monotonic identifier, reflecting registration order.
        contract: The type (or key) requested by callers.
        strategy: How the instance is produced.
        implementation: Concrete type constructed by the TYPE strategy.
        constant: Value returned by the CONSTANT strategy.
        factory: Callable receiving the resolution context, for the FACTORY strategy.
        scope: Lifetime of produced instances.
        scope_callback: Returns the scope key for CUSTOM scopes.
        name: Optional qualifier.
        condition: Optional predicate over the resolution context.
        constructor_arguments: Parameter name to value-or-provider overrides.
        property_values: Attribute name to value-or-provider assignments.
        activation_actions: Callbacks run with each new instance.
        deactivation_actions: Callbacks run before a scoped instance is disposed.
        is_implicit: True for self-bindings created on demand.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    binding_id: int = Field(default_factory=lambda: next(_binding_ids))
    contract: Any = Field(..., description="The contract this binding satisfies.")
    strategy: Optional[Strategy] = None
    implementation: Optional[Type] = None
    constant: Any = None
    factory: Optional[Callable[..., Any]] = None
    scope: Scope = Scope.TRANSIENT
    scope_callback: Optional[Callable[..., Any]] = None
    name: Optional[str] = None
    condition: Optional[Callable[..., bool]] = None
    constructor_arguments: Dict[str, Any] = Field(default_factory=dict)
    property_values: Dict[str, Any] = Field(default_factory=dict)
    activation_actions: List[Callable[..., Any]] = Field(default_factory=list)
    deactivation_actions: List[Callable[..., Any]] = Field(default_factory=list)
    is_implicit: bool = False

    @property
    def is_conditional(self) -> bool:
        return self.condition is not None

    def matches(self, context: "ResolutionContext") -> bool:
        """Check the qualifier name and condition against a context."""
        if context.name is not None and self.name != context.name:
            return False
        if self.condition is not None and not self.condition(context):
            return False
        return True

    def describe(self) -> str:
        """Human readable summary, used in error messages and logs."""
        if self.strategy == Strategy.TYPE:
            target = describe(self.implementation)
        elif self.strategy == Strategy.CONSTANT:
            target = f"constant {self.constant!r}"
        elif self.strategy == Strategy.FACTORY:
            target = f"method {describe(self.factory)}"
        else:
            target = "<unconfigured>"
        text = f"{describe(self.contract)} -> {target}"
        if self.name is not None:
            text += f" named '{self.name}'"
        if self.condition is not None:
            text += " (conditional)"
        return text


class Target(BaseModel):
    """The constructor parameter or property being filled by a resolution.

    Attributes:
        name: Declared parameter or attribute name.
        contract: Declared type of the member (element type for collections).
        owner: The type that declares the member.
        kind: Whether the member is a constructor parameter or a property.
        is_collection: The member asks for every matching instance.
        has_default: The parameter may be left to its default value.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    contract: Any
    owner: Optional[Type] = None
    kind: TargetKind = TargetKind.PARAMETER
    is_collection: bool = False
    has_default: bool = False


class ResolutionContext(BaseModel):
    """One resolution attempt and its position in the object graph.

    Contexts form a chain through ``parent`` back to the root request; the
    chain drives condition predicates and cycle detection.

    Attributes:
        kernel: The kernel performing the resolution.
        contract: The requested contract.
        name: Requested qualifier name, if any.
        target: The member being filled, None for root requests.
        parent: Context of the object whose dependency is being resolved.
        binding: Binding selected for this context, set after lookup.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kernel: Optional["IKernel"] = None
    contract: Any
    name: Optional[str] = None
    target: Optional[Target] = None
    parent: Optional["ResolutionContext"] = None
    binding: Optional[Binding] = None

    @property
    def depth(self) -> int:
        return sum(1 for _ in self.ancestors())

    def ancestors(self) -> Iterator["ResolutionContext"]:
        """Yield parent contexts from the nearest up to the root."""
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def request_chain(self) -> List[Any]:
        """Return the requested contracts from the root request down to this one."""
        chain = [self.contract]
        chain.extend(ancestor.contract for ancestor in self.ancestors())
        chain.reverse()
        return chain

    def child(self, contract: Any, target: Optional[Target] = None, name: Optional[str] = None) -> "ResolutionContext":
        """Create the context for a dependency of the object built in this context."""
        return ResolutionContext(kernel=self.kernel, contract=contract, name=name, target=target, parent=self)

    def ensure_acyclic(self, binding: Binding) -> None:
        """Fail if ``binding`` is already being activated higher up the chain.

        Raises:
            CyclicDependency: If an ancestor context selected the same binding.
        """
        path = [self.contract]
        for ancestor in self.ancestors():
            path.append(ancestor.contract)
            if ancestor.binding is not None and ancestor.binding.binding_id == binding.binding_id:
                path.reverse()
                raise CyclicDependency(path)


class InterceptorBinding(BaseModel):
    """Declares an interceptor around the methods of a contract's instances.

    Attributes:
        contract: The contract whose instances are intercepted.
        interceptor: An interceptor instance, or a type resolved through the kernel.
        order: Position key; lower runs first.
        sequence: Declaration order, used to break ties.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    contract: Any
    interceptor: Any
    order: int = 0
    sequence: int = 0

    @property
    def sort_key(self) -> tuple:
        return (self.order, self.sequence)


class TypeDescriptor(BaseModel):
    """Metadata about a candidate implementation type offered by a type source."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: Type
    name: str
    qualname: str
    module: str

    @classmethod
    def from_type(cls, candidate: Type) -> "TypeDescriptor":
        return cls(
            type=candidate,
            name=candidate.__name__,
            qualname=candidate.__qualname__,
            module=candidate.__module__,
        )

    def implements(self, contract: Any) -> bool:
        """True if the type is a concrete class deriving from ``contract``."""
        if self.type is contract or inspect.isabstract(self.type):
            return False
        try:
            return issubclass(self.type, contract)
        except TypeError:
            return False


class MemberDescriptor(BaseModel):
    """An injectable member reported by a member source."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    contract: Any
    owner: Type
    qualifier: Optional[str] = None
    is_collection: bool = False

    def to_target(self) -> Target:
        return Target(
            name=self.name,
            contract=self.contract,
            owner=self.owner,
            kind=TargetKind.PROPERTY,
            is_collection=self.is_collection,
        )


class CacheEntry(BaseModel):
    """A live instance owned by a non-transient scope.

    Attributes:
        binding: The binding that produced the instance.
        scope_key: The scope that owns the instance.
        instance: The cached instance, possibly an interception proxy.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    binding: Binding
    scope_key: Any
    instance: Any

    @property
    def cache_key(self) -> tuple:
        return (self.binding.binding_id, self.scope_key)
