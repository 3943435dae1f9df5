"""Unit tests for ActivationResolver."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import pytest

from woven_di.application.interception import InterceptionProxy, InterceptorChainBuilder, unwrap_proxy
from woven_di.application.registry import BindingRegistry
from woven_di.application.resolver import ActivationResolver
from woven_di.application.scope_manager import ScopeManager
from woven_di.domain import (
    ActivationFailure,
    AmbiguousBinding,
    Binding,
    CyclicDependency,
    IInterceptor,
    IMemberSource,
    KernelSettings,
    MemberDescriptor,
    NoBindingFound,
    ResolutionContext,
    Scope,
    Strategy,
    TargetKind,
)


class Ingredient(ABC):
    @abstractmethod
    def name(self) -> str: ...


class Steak(Ingredient):
    def name(self) -> str:
        return "steak"


class SauceBearnaise(Ingredient):
    def name(self) -> str:
        return "bearnaise"


class Course:
    def __init__(self, ingredient: Ingredient):
        self.ingredient = ingredient


class Meal:
    def __init__(self, ingredients: List[Ingredient]):
        self.ingredients = ingredients


class TupleMeal:
    def __init__(self, ingredients: Tuple[Ingredient, ...]):
        self.ingredients = ingredients


class SequenceMeal:
    def __init__(self, ingredients: Sequence[Ingredient]):
        self.ingredients = ingredients


class Spiced:
    def __init__(self, ingredient: Ingredient, spiciness: int = 1):
        self.ingredient = ingredient
        self.spiciness = spiciness


class OptionalSide:
    def __init__(self, side: Optional[Ingredient] = None):
        self.side = side


class OptionalWithoutDefault:
    def __init__(self, side: Optional[Ingredient]):
        self.side = side


class Untyped:
    def __init__(self, mystery):
        self.mystery = mystery


class Exploding:
    def __init__(self):
        raise ValueError("kitchen on fire")


class Chicken:
    def __init__(self, egg: "Egg"):
        self.egg = egg


class Egg:
    def __init__(self, chicken: Chicken):
        self.chicken = chicken


class NeedsMissing:
    def __init__(self, ingredient: Ingredient):
        self.ingredient = ingredient


class Plate:
    def __init__(self, course: NeedsMissing, garnish: int = 3):
        self.course = course
        self.garnish = garnish


class Pantry:
    pass


class Recorder(IInterceptor):
    calls: List[str] = []

    def intercept(self, invocation):
        Recorder.calls.append(invocation.method_name)
        invocation.proceed()


class StubMemberSource(IMemberSource):
    def __init__(self, members):
        self.members = members

    def get_injectable_members(self, owner):
        return [member for member in self.members if member.owner is owner]


def make_resolver(settings=None, member_source=None):
    registry = BindingRegistry()
    chains = InterceptorChainBuilder()
    resolver = ActivationResolver(
        registry=registry,
        scope_manager=ScopeManager(root_scope="root"),
        chain_builder=chains,
        settings=settings or KernelSettings(),
        member_source=member_source,
    )
    return resolver, registry, chains


def type_binding(contract, implementation, **fields):
    return Binding(contract=contract, strategy=Strategy.TYPE, implementation=implementation, **fields)


def resolve(resolver, contract, name=None):
    return resolver.resolve(ResolutionContext(contract=contract, name=name))


class TestStrategies:
    """Test cases for the construction strategies."""

    def test_type_binding(self):
        """Test constructing the bound implementation."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))

        assert isinstance(resolve(resolver, Ingredient), Steak)

    def test_constant_binding(self):
        """Test that constants are returned unchanged."""
        resolver, registry, _ = make_resolver()
        steak = Steak()
        registry.register(Binding(contract=Ingredient, strategy=Strategy.CONSTANT, constant=steak))

        assert resolve(resolver, Ingredient) is steak
        assert resolve(resolver, Ingredient) is steak

    def test_factory_receives_context(self):
        """Test that factories are called with the resolution context."""
        resolver, registry, _ = make_resolver()
        seen = []

        def factory(context):
            seen.append(context)
            return Steak()

        registry.register(Binding(contract=Ingredient, strategy=Strategy.FACTORY, factory=factory))

        assert isinstance(resolve(resolver, Ingredient), Steak)
        assert seen[0].contract is Ingredient

    def test_unconfigured_binding(self):
        """Test that a binding without a target is never selected."""
        resolver, registry, _ = make_resolver()
        registry.register(Binding(contract=Ingredient))

        with pytest.raises(NoBindingFound):
            resolve(resolver, Ingredient)

    def test_singleton_binding_is_cached(self):
        """Test that singleton bindings are built once."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak, scope=Scope.SINGLETON))

        assert resolve(resolver, Ingredient) is resolve(resolver, Ingredient)

    def test_transient_binding_is_rebuilt(self):
        """Test that transient bindings are built every time."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))

        assert resolve(resolver, Ingredient) is not resolve(resolver, Ingredient)


class TestConstructorInjection:
    """Test cases for resolving constructor parameters."""

    def test_dependency_is_resolved(self):
        """Test that parameters are resolved by their annotation."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))

        course = resolve(resolver, Course)

        assert isinstance(course.ingredient, Steak)

    def test_target_describes_parameter(self):
        """Test that child contexts carry the parameter target."""
        resolver, registry, _ = make_resolver()
        targets = []

        def factory(context):
            targets.append(context.target)
            return Steak()

        registry.register(Binding(contract=Ingredient, strategy=Strategy.FACTORY, factory=factory))
        resolve(resolver, Course)

        assert targets[0].name == "ingredient"
        assert targets[0].owner is Course
        assert targets[0].kind == TargetKind.PARAMETER

    def test_list_injection(self):
        """Test that list parameters receive every binding in order."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))
        registry.register(type_binding(Ingredient, SauceBearnaise))

        meal = resolve(resolver, Meal)

        assert isinstance(meal.ingredients, list)
        assert [type(i) for i in meal.ingredients] == [Steak, SauceBearnaise]

    def test_tuple_and_sequence_injection(self):
        """Test the other supported collection annotations."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))

        assert isinstance(resolve(resolver, TupleMeal).ingredients, tuple)
        assert len(resolve(resolver, SequenceMeal).ingredients) == 1

    def test_empty_collection(self):
        """Test that an unbound element contract yields an empty collection."""
        resolver, _, _ = make_resolver()

        assert resolve(resolver, Meal).ingredients == []

    def test_default_used_when_unbound(self):
        """Test that unresolvable parameters with defaults keep them."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))

        assert resolve(resolver, Spiced).spiciness == 1

    def test_constructor_argument_literal(self):
        """Test that explicit constructor arguments win over resolution."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))
        registry.register(type_binding(Spiced, Spiced, constructor_arguments={"spiciness": 5}))

        assert resolve(resolver, Spiced).spiciness == 5

    def test_constructor_argument_provider(self):
        """Test that function arguments are called with the context."""
        resolver, registry, _ = make_resolver()
        sauce = SauceBearnaise()
        registry.register(
            type_binding(Course, Course, constructor_arguments={"ingredient": lambda context: sauce})
        )

        assert resolve(resolver, Course).ingredient is sauce

    def test_class_argument_is_literal(self):
        """Test that classes given as arguments are not called."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Untyped, Untyped, constructor_arguments={"mystery": Steak}))

        assert resolve(resolver, Untyped).mystery is Steak

    def test_optional_with_default(self):
        """Test that Optional parameters with defaults fall back to them."""
        resolver, _, _ = make_resolver()

        assert resolve(resolver, OptionalSide).side is None

    def test_optional_without_default(self):
        """Test that Optional parameters without defaults receive None."""
        resolver, _, _ = make_resolver()

        assert resolve(resolver, OptionalWithoutDefault).side is None

    def test_optional_resolves_when_bound(self):
        """Test that Optional parameters are injected when possible."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))

        assert isinstance(resolve(resolver, OptionalSide).side, Steak)

    def test_untyped_parameter(self):
        """Test that parameters without annotation or default fail activation."""
        resolver, _, _ = make_resolver()

        with pytest.raises(ActivationFailure, match="lacks type hint"):
            resolve(resolver, Untyped)

    def test_nested_failure_is_not_hidden_by_default(self):
        """Test that a default only covers the parameter's own lookup."""
        resolver, _, _ = make_resolver()

        with pytest.raises(NoBindingFound) as exc_info:
            resolve(resolver, Plate)

        assert exc_info.value.contract is Ingredient
        assert exc_info.value.chain == [Plate, NeedsMissing, Ingredient]


class TestFailures:
    """Test cases for resolution errors."""

    def test_no_binding_for_abstract_contract(self):
        """Test that abstract contracts are never self-bound."""
        resolver, _, _ = make_resolver()

        with pytest.raises(NoBindingFound):
            resolve(resolver, Ingredient)

    def test_ambiguous(self):
        """Test that two bindings for a single request are ambiguous."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))
        registry.register(type_binding(Ingredient, SauceBearnaise))

        with pytest.raises(AmbiguousBinding):
            resolve(resolver, Ingredient)

    def test_constructor_failure_is_wrapped(self):
        """Test that constructor errors become ActivationFailure."""
        resolver, _, _ = make_resolver()

        with pytest.raises(ActivationFailure) as exc_info:
            resolve(resolver, Exploding)

        assert isinstance(exc_info.value.cause, ValueError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_factory_failure_is_wrapped(self):
        """Test that factory errors become ActivationFailure."""
        resolver, registry, _ = make_resolver()

        def factory(context):
            raise KeyError("missing")

        registry.register(Binding(contract=Ingredient, strategy=Strategy.FACTORY, factory=factory))

        with pytest.raises(ActivationFailure):
            resolve(resolver, Ingredient)

    def test_cycle(self):
        """Test that a constructor cycle is reported."""
        resolver, _, _ = make_resolver()

        with pytest.raises(CyclicDependency) as exc_info:
            resolve(resolver, Chicken)

        assert exc_info.value.dependency_chain == [Chicken, Egg, Chicken]


class TestImplicitSelfBinding:
    """Test cases for on-demand self-bindings."""

    def test_concrete_class_is_self_bound(self):
        """Test that unbound concrete classes are constructed."""
        resolver, registry, _ = make_resolver()

        assert isinstance(resolve(resolver, Steak), Steak)
        assert registry.bindings_for(Steak)[0].is_implicit

    def test_implicit_binding_is_reused(self):
        """Test that a single implicit binding is registered per contract."""
        resolver, registry, _ = make_resolver()

        resolve(resolver, Steak)
        resolve(resolver, Steak)

        assert len(registry.bindings_for(Steak)) == 1

    def test_disabled(self):
        """Test that implicit self-binding can be switched off."""
        resolver, _, _ = make_resolver(KernelSettings(implicit_self_binding=False))

        with pytest.raises(NoBindingFound):
            resolve(resolver, Steak)

    def test_named_request_never_self_binds(self):
        """Test that a qualifier name disables self-binding."""
        resolver, _, _ = make_resolver()

        with pytest.raises(NoBindingFound):
            resolve(resolver, Steak, name="special")

    def test_builtins_are_not_self_bound(self):
        """Test that builtin types are never constructed implicitly."""
        resolver, _, _ = make_resolver()

        with pytest.raises(NoBindingFound):
            resolve(resolver, str)


class TestMemberInjection:
    """Test cases for property values and member-source injection."""

    def test_property_values(self):
        """Test literal and provider property values."""
        resolver, registry, _ = make_resolver()
        registry.register(
            type_binding(Steak, Steak, property_values={"doneness": "rare", "weight": lambda context: 250})
        )

        steak = resolve(resolver, Steak)

        assert steak.doneness == "rare"
        assert steak.weight == 250

    def test_member_source(self):
        """Test that reported members are resolved and assigned."""
        members = [MemberDescriptor(name="sauce", contract=Ingredient, owner=Steak, qualifier="sauce")]
        resolver, registry, _ = make_resolver(member_source=StubMemberSource(members))
        registry.register(type_binding(Ingredient, SauceBearnaise, name="sauce"))

        steak = resolve(resolver, Steak)

        assert isinstance(steak.sauce, SauceBearnaise)

    def test_member_source_collection(self):
        """Test that collection members receive every match."""
        members = [MemberDescriptor(name="sides", contract=Ingredient, owner=Pantry, is_collection=True)]
        resolver, registry, _ = make_resolver(member_source=StubMemberSource(members))
        registry.register(type_binding(Ingredient, Steak))
        registry.register(type_binding(Ingredient, SauceBearnaise))

        pantry = resolve(resolver, Pantry)

        assert len(pantry.sides) == 2

    def test_member_injection_disabled(self):
        """Test that member injection honours the kernel setting."""
        members = [MemberDescriptor(name="sauce", contract=Ingredient, owner=Steak)]
        resolver, _, _ = make_resolver(
            KernelSettings(inject_annotated_members=False), member_source=StubMemberSource(members)
        )

        assert not hasattr(resolve(resolver, Steak), "sauce")


class TestActivationHooks:
    """Test cases for activation callbacks and interception."""

    def test_activation_actions(self):
        """Test that activation callbacks receive the new instance."""
        resolver, registry, _ = make_resolver()
        activated = []
        registry.register(type_binding(Steak, Steak, activation_actions=[activated.append]))

        steak = resolve(resolver, Steak)

        assert activated == [steak]

    def test_intercepted_contract_is_proxied(self):
        """Test that instances of intercepted contracts are wrapped."""
        resolver, registry, chains = make_resolver()
        registry.register(type_binding(Ingredient, Steak))
        chains.add(Ingredient, Recorder())
        Recorder.calls = []

        ingredient = resolve(resolver, Ingredient)

        assert type(ingredient) is InterceptionProxy
        assert isinstance(unwrap_proxy(ingredient), Steak)
        assert ingredient.name() == "steak"
        assert Recorder.calls == ["name"]

    def test_constants_are_never_proxied(self):
        """Test that constant bindings bypass interception."""
        resolver, registry, chains = make_resolver()
        steak = Steak()
        registry.register(Binding(contract=Ingredient, strategy=Strategy.CONSTANT, constant=steak))
        chains.add(Ingredient, Recorder())

        assert resolve(resolver, Ingredient) is steak


class TestResolveAll:
    """Test cases for resolving every matching binding."""

    def test_all_in_order(self):
        """Test that every binding is activated in registration order."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak))
        registry.register(type_binding(Ingredient, SauceBearnaise))

        instances = resolver.resolve_all(ResolutionContext(contract=Ingredient))

        assert [type(i) for i in instances] == [Steak, SauceBearnaise]

    def test_named_subset(self):
        """Test that a name restricts the set."""
        resolver, registry, _ = make_resolver()
        registry.register(type_binding(Ingredient, Steak, name="main"))
        registry.register(type_binding(Ingredient, SauceBearnaise, name="sauce"))

        instances = resolver.resolve_all(ResolutionContext(contract=Ingredient, name="sauce"))

        assert [type(i) for i in instances] == [SauceBearnaise]

    def test_nothing_bound(self):
        """Test that no bindings yield an empty list rather than an error."""
        resolver, _, _ = make_resolver()

        assert resolver.resolve_all(ResolutionContext(contract=Ingredient)) == []
