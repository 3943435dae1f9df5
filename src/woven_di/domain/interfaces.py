from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Type, TypeVar

from woven_di.domain.models import Binding, MemberDescriptor, ResolutionContext, TypeDescriptor

if TYPE_CHECKING:
    from woven_di.application.interception import Invocation

T = TypeVar("T")


class IKernel(ABC):
    """Abstract interface for the dependency injection kernel."""

    @abstractmethod
    def get(self, contract: Type[T], name: Optional[str] = None) -> T:
        """Resolve exactly one instance of a contract.

        Args:
            contract: The type to resolve.
            name: Optional qualifier the binding must carry.
        """

    @abstractmethod
    def get_all(self, contract: Type[T], name: Optional[str] = None) -> List[T]:
        """Resolve one instance per matching binding, in registration order.

        Args:
            contract: The type to resolve.
            name: Optional qualifier the bindings must carry.
        """

    @abstractmethod
    def release(self, instance: Any) -> bool:
        """Dispose an instance owned by a non-transient scope.

        Args:
            instance: An instance previously returned by the kernel.
        """

    @abstractmethod
    def dispose(self) -> None:
        """Tear down every scope and stop serving resolutions."""


class IResolver(ABC):
    """Abstract interface for turning a resolution context into an instance."""

    @abstractmethod
    def resolve(self, context: ResolutionContext) -> Any:
        """Select a binding for the context and activate it.

        Args:
            context: The resolution context describing the request.

        Returns:
            The activated (and possibly cached or intercepted) instance.

        Raises:
            NoBindingFound: If no binding matches.
            AmbiguousBinding: If several bindings match.
            CyclicDependency: If the binding is already being activated in the chain.
        """

    @abstractmethod
    def resolve_all(self, context: ResolutionContext) -> List[Any]:
        """Activate every binding matching the context, in registration order."""


class IScopeManager(ABC):
    """Abstract interface for managing instance lifetimes."""

    @abstractmethod
    def get_or_create(self, binding: Binding, context: ResolutionContext, factory: Callable[[], Any]) -> Any:
        """Return the cached instance for the binding's scope or create one.

        Args:
            binding: The binding being activated.
            context: The current resolution context.
            factory: Builds a new instance on cache miss.
        """

    @abstractmethod
    def release(self, instance: Any) -> bool:
        """Dispose and forget a scoped instance; no-op for untracked ones."""

    @abstractmethod
    def teardown_scope(self, scope_key: Any) -> None:
        """Dispose every instance cached under a scope."""

    @abstractmethod
    def teardown_all(self) -> None:
        """Dispose every cached instance of every scope."""


class IInterceptor(ABC):
    """A unit of cross-cutting logic wrapped around method calls."""

    @abstractmethod
    def intercept(self, invocation: "Invocation") -> None:
        """Handle an invocation.

        Call ``invocation.proceed()`` at most once to run the rest of the
        chain; set ``invocation.return_value`` to short-circuit or to
        substitute a result.

        Args:
            invocation: The reified method call.
        """


class ITypeSource(ABC):
    """Supplies candidate implementation types for convention-based binding."""

    @abstractmethod
    def list_candidate_types(self, origin: Any) -> Sequence[TypeDescriptor]:
        """List the types found in ``origin`` (a module, package or namespace)."""


class IMemberSource(ABC):
    """Reports which members of a type are marked for injection."""

    @abstractmethod
    def get_injectable_members(self, owner: Type) -> Sequence[MemberDescriptor]:
        """List injectable members of ``owner`` in declaration order."""
