import inspect
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from woven_di.application.builders import BindingBuilder, ConventionBuilder
from woven_di.application.disposer import Disposer
from woven_di.application.interception import InterceptorChainBuilder, ProxyInvoker
from woven_di.application.modules import KernelModule
from woven_di.application.registry import BindingRegistry
from woven_di.application.resolver import ActivationResolver
from woven_di.application.scope_manager import ScopeManager
from woven_di.domain import (
    Binding,
    BindingError,
    IKernel,
    IMemberSource,
    ITypeSource,
    KernelDisposedError,
    KernelSettings,
    NoBindingFound,
    ResolutionContext,
)
from woven_di.domain.exceptions import describe

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Kernel(IKernel):
    """Main dependency injection kernel.

    Orchestrates binding, resolution, scoping and interception. A kernel is
    an explicitly constructed object with its own bindings and caches;
    singletons live as long as the kernel and are disposed by ``dispose()``.

    Attributes:
        _settings: Kernel configuration.
        _registry: Bindings per contract.
        _interceptors: Interceptor declarations and chains per contract.
        _scope_manager: Scope caches and disposal.
        _resolver: Builds instance graphs.
        _type_source: Optional collaborator used by ``scan``.
        _member_source: Optional collaborator reporting injectable members.

    Example:
        >>> kernel = Kernel()
        >>> kernel.bind(Ingredient).to(SauceBearnaise).in_singleton_scope()
        >>> sauce = kernel.get(Ingredient)
        >>> kernel.dispose()
    """

    def __init__(
        self,
        settings: Optional[KernelSettings] = None,
        type_source: Optional[ITypeSource] = None,
        member_source: Optional[IMemberSource] = None,
    ) -> None:
        """Initialize the kernel with empty registries.

        Args:
            settings: Optional configuration; defaults apply when omitted.
            type_source: Supplies candidate types to ``scan``.
            member_source: Reports members marked for injection.
        """
        self._settings = settings or KernelSettings()
        self._type_source = type_source
        self._member_source = member_source
        self._registry = BindingRegistry()
        self._interceptors = InterceptorChainBuilder()
        self._scope_manager = ScopeManager(root_scope=self, disposer=Disposer())
        self._invoker = ProxyInvoker()
        self._modules: Dict[str, KernelModule] = {}
        self._disposed = False
        self._resolver = self._build_resolver()

    def _build_resolver(self) -> ActivationResolver:
        return ActivationResolver(
            registry=self._registry,
            scope_manager=self._scope_manager,
            chain_builder=self._interceptors,
            settings=self._settings,
            member_source=self._member_source,
            invoker=self._invoker,
        )

    @property
    def settings(self) -> KernelSettings:
        return self._settings

    @property
    def registry(self) -> BindingRegistry:
        return self._registry

    @property
    def interceptors(self) -> InterceptorChainBuilder:
        return self._interceptors

    @property
    def scope_manager(self) -> ScopeManager:
        return self._scope_manager

    @property
    def type_source(self) -> Optional[ITypeSource]:
        return self._type_source

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def bind(self, contract: Type[T]) -> BindingBuilder[T]:
        """Declare a new binding for ``contract`` and return its builder.

        The binding is registered immediately and the builder completes it.
        Until a target is set it is never selected, and a rejected target
        withdraws it from the registry.

        Example:
            >>> kernel.bind(Ingredient).to(Steak).named("steak")
        """
        self._ensure_active()
        binding = Binding(contract=contract, scope=self._settings.default_scope)
        self._registry.remove_implicit(contract)
        self._registry.register(binding)
        return BindingBuilder(self, binding)

    def rebind(self, contract: Type[T]) -> BindingBuilder[T]:
        """Replace every binding of ``contract`` with a new one."""
        self.unbind(contract)
        return self.bind(contract)

    def unbind(self, contract: Any) -> None:
        """Remove every binding of ``contract``. Cached instances stay owned by their scope."""
        self._registry.remove(contract)

    def load(self, *modules: Union[KernelModule, Type[KernelModule]]) -> None:
        """Load modules, given as classes or instances.

        Raises:
            BindingError: If a module with the same name is already loaded.
        """
        for module in modules:
            instance = module() if inspect.isclass(module) else module
            if instance.module_name in self._modules:
                raise BindingError(f"A module named '{instance.module_name}' is already loaded")
            self._modules[instance.module_name] = instance
            instance.on_load(self)
            logger.debug("Loaded module %s", instance.module_name)

    def has_module(self, name: str) -> bool:
        return name in self._modules

    def scan(self, origin: Any) -> ConventionBuilder:
        """Start a convention-based registration over the types found in ``origin``."""
        self._ensure_active()
        return ConventionBuilder(self, origin)

    def get(self, contract: Type[T], name: Optional[str] = None) -> T:
        """Resolve exactly one instance of ``contract``.

        Args:
            contract: The type to resolve.
            name: Optional qualifier the binding must carry.

        Returns:
            The instance, possibly cached or wrapped in an interception proxy.

        Raises:
            NoBindingFound: If no binding matches.
            AmbiguousBinding: If several bindings match.
            CyclicDependency: If the graph contains a cycle.
            ActivationFailure: If construction fails.
            KernelDisposedError: If the kernel was disposed.

        Example:
            >>> sauce = kernel.get(Ingredient, "sauce")
        """
        self._ensure_active()
        logger.debug("Resolving %s%s", describe(contract), f" named '{name}'" if name else "")
        return self._resolver.resolve(ResolutionContext(kernel=self, contract=contract, name=name))

    def try_get(self, contract: Type[T], name: Optional[str] = None) -> Optional[T]:
        """Like ``get`` but returns None when no binding matches."""
        try:
            return self.get(contract, name)
        except NoBindingFound:
            return None

    def get_all(self, contract: Type[T], name: Optional[str] = None) -> List[T]:
        """Resolve one instance per matching binding, in registration order."""
        self._ensure_active()
        return self._resolver.resolve_all(ResolutionContext(kernel=self, contract=contract, name=name))

    def release(self, instance: Any) -> bool:
        """Dispose ``instance`` if a non-transient scope owns it.

        Returns:
            True if the instance was disposed, False if the kernel never tracked it.
        """
        return self._scope_manager.release(instance)

    def teardown_scope(self, scope_key: Any) -> None:
        """Dispose every instance cached under ``scope_key`` (e.g. a named scope)."""
        self._scope_manager.teardown_scope(scope_key)

    def begin_scope(self, name: str) -> "ScopeBlock":
        """Return a context manager that tears the named scope down on exit.

        Example:
            >>> kernel.bind(UnitOfWork).to_self().in_named_scope("request")
            >>> with kernel.begin_scope("request"):
            ...     uow = kernel.get(UnitOfWork)
        """
        return ScopeBlock(self, name)

    def dispose(self) -> None:
        """Dispose every scoped instance and refuse further resolutions.

        Transient instances are never disposed. Calling ``dispose`` again is a no-op.

        Raises:
            DisposalError: If one or more disposals failed; the kernel is disposed regardless.
        """
        if self._disposed:
            return
        self._disposed = True
        logger.debug("Disposing kernel")
        self._scope_manager.teardown_all()

    def _ensure_active(self) -> None:
        if self._disposed:
            raise KernelDisposedError("The kernel has been disposed")

    def __enter__(self) -> "Kernel":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.dispose()
        return False


class ScopeBlock:
    """Context manager bounding the lifetime of a named scope."""

    def __init__(self, kernel: Kernel, name: str) -> None:
        self._kernel = kernel
        self.name = name

    def __enter__(self) -> "ScopeBlock":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self._kernel.teardown_scope(self.name)
        return False
