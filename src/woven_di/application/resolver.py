import inspect
import logging
import threading
from typing import Any, Dict, List, Optional

from woven_di.application.interception import InterceptionProxy, InterceptorChainBuilder, ProxyInvoker
from woven_di.application.introspection import (
    collection_element,
    constructor_signature,
    init_type_hints,
    is_provider,
    is_self_bindable,
    unwrap_optional,
)
from woven_di.application.registry import BindingRegistry
from woven_di.domain import (
    ActivationFailure,
    Binding,
    DIException,
    IMemberSource,
    IResolver,
    IScopeManager,
    KernelSettings,
    NoBindingFound,
    ResolutionContext,
    Scope,
    Strategy,
    Target,
    TargetKind,
)

logger = logging.getLogger(__name__)

_SKIP = object()


class ActivationResolver(IResolver):
    """Resolves contracts into instance graphs.

    Selects a binding through the registry, consults the scope manager and,
    on a cache miss, builds the instance: constructor parameters are resolved
    recursively from child contexts, then property values and member-source
    injection points are applied, and finally the instance is wrapped in an
    interception proxy when its contract has interceptors.

    Attributes:
        _registry: Source of bindings.
        _scope_manager: Decides between cached and new instances.
        _chain_builder: Interceptor chains per contract.
        _invoker: Runs interceptor chains for proxies.
        _member_source: Reports attribute-declared injection points, if any.
        _settings: Kernel configuration.
    """

    def __init__(
        self,
        registry: BindingRegistry,
        scope_manager: IScopeManager,
        chain_builder: InterceptorChainBuilder,
        settings: KernelSettings,
        member_source: Optional[IMemberSource] = None,
        invoker: Optional[ProxyInvoker] = None,
    ) -> None:
        self._registry = registry
        self._scope_manager = scope_manager
        self._chain_builder = chain_builder
        self._settings = settings
        self._member_source = member_source
        self._invoker = invoker if invoker is not None else ProxyInvoker()
        self._implicit_lock = threading.Lock()

    def resolve(self, context: ResolutionContext) -> Any:
        """Select the single applicable binding for a context and activate it.

        Args:
            context: The resolution context.

        Returns:
            The instance for the context.

        Raises:
            NoBindingFound: If no binding matches and no implicit self-binding applies.
            AmbiguousBinding: If several bindings match.
            CyclicDependency: If the binding is already being activated in this chain.
            ActivationFailure: If a constructor, factory or provider fails.
        """
        binding = self._select(context)
        return self._activate_binding(binding, context)

    def resolve_all(self, context: ResolutionContext) -> List[Any]:
        """Activate every binding matching the context, in registration order.

        The ambiguity rule does not apply: multiplicity was asked for.
        """
        instances = []
        for binding in self._registry.lookup_all(context):
            sibling = ResolutionContext(
                kernel=context.kernel,
                contract=context.contract,
                name=context.name,
                target=context.target,
                parent=context.parent,
            )
            instances.append(self._activate_binding(binding, sibling))
        return instances

    def _select(self, context: ResolutionContext) -> Binding:
        try:
            return self._registry.lookup(context)
        except NoBindingFound:
            binding = self._implicit_binding(context)
            if binding is None:
                raise
            return binding

    def _implicit_binding(self, context: ResolutionContext) -> Optional[Binding]:
        if not self._settings.implicit_self_binding or context.name is not None:
            return None
        contract = context.contract
        if not is_self_bindable(contract):
            return None

        with self._implicit_lock:
            for binding in self._registry.bindings_for(contract):
                if binding.is_implicit:
                    return binding
            binding = Binding(
                contract=contract,
                implementation=contract,
                strategy=Strategy.TYPE,
                scope=Scope.TRANSIENT,
                is_implicit=True,
            )
            return self._registry.register(binding)

    def _activate_binding(self, binding: Binding, context: ResolutionContext) -> Any:
        context.binding = binding
        context.ensure_acyclic(binding)

        if binding.strategy == Strategy.CONSTANT:
            return binding.constant

        return self._scope_manager.get_or_create(binding, context, lambda: self._activate(binding, context))

    def _activate(self, binding: Binding, context: ResolutionContext) -> Any:
        if binding.strategy == Strategy.TYPE:
            instance = self._construct(binding, context)
        else:
            instance = self._call(binding, binding.factory, context)

        self._inject_members(binding, instance, context)
        for action in binding.activation_actions:
            self._call(binding, action, instance)
        logger.debug("Activated %s for %s", type(instance).__name__, binding.describe())

        chain = self._chain_builder.build_chain(binding.contract, context.kernel)
        if chain:
            return InterceptionProxy(instance, chain, self._invoker)
        return instance

    def _construct(self, binding: Binding, context: ResolutionContext) -> Any:
        implementation = binding.implementation
        signature = constructor_signature(implementation)
        hints = init_type_hints(implementation)

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        parameters = signature.parameters.values() if signature is not None else ()
        for param in parameters:
            # *args and **kwargs are never auto-wired
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            if param.name in binding.constructor_arguments:
                value = self._value_of(binding, binding.constructor_arguments[param.name], context)
            else:
                value = self._resolve_parameter(implementation, param, hints, context)
                if value is _SKIP:
                    continue

            if param.kind == inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[param.name] = value

        try:
            return implementation(*args, **kwargs)
        except DIException:
            raise
        except Exception as exc:
            raise ActivationFailure(binding.contract, exc) from exc

    def _resolve_parameter(
        self,
        owner: type,
        param: inspect.Parameter,
        hints: Dict[str, Any],
        context: ResolutionContext,
    ) -> Any:
        has_default = param.default is not inspect.Parameter.empty
        annotation = hints.get(param.name, param.annotation)
        if annotation is inspect.Parameter.empty:
            if has_default:
                return _SKIP
            raise ActivationFailure(
                owner,
                TypeError(f"Parameter '{param.name}' lacks type hint and has no default value"),
            )

        annotation, optional = unwrap_optional(annotation)
        contract, container = collection_element(annotation)
        target = Target(
            name=param.name,
            contract=contract,
            owner=owner,
            kind=TargetKind.PARAMETER,
            is_collection=container is not None,
            has_default=has_default,
        )
        child = context.child(contract, target)

        if container is not None:
            return container(self.resolve_all(child))

        try:
            return self.resolve(child)
        except NoBindingFound:
            # Only this parameter's own lookup may fall back, not a failure deeper in its graph
            if child.binding is not None:
                raise
            if has_default:
                return _SKIP
            if optional:
                return None
            raise

    def _inject_members(self, binding: Binding, instance: Any, context: ResolutionContext) -> None:
        owner = type(instance)
        for name, value in binding.property_values.items():
            setattr(instance, name, self._value_of(binding, value, context))

        if self._member_source is None or not self._settings.inject_annotated_members:
            return

        for member in self._member_source.get_injectable_members(owner):
            if member.name in binding.property_values:
                continue
            child = context.child(member.contract, member.to_target(), name=member.qualifier)
            if member.is_collection:
                value = self.resolve_all(child)
            else:
                value = self.resolve(child)
            setattr(instance, member.name, value)

    def _value_of(self, binding: Binding, value: Any, context: ResolutionContext) -> Any:
        if is_provider(value):
            return self._call(binding, value, context)
        return value

    def _call(self, binding: Binding, func: Any, argument: Any) -> Any:
        try:
            return func(argument)
        except DIException:
            raise
        except Exception as exc:
            raise ActivationFailure(binding.contract, exc) from exc
