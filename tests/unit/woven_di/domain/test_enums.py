"""Unit tests for domain enums."""

from woven_di.domain.enums import InvocationState, Scope, Strategy, TargetKind


class TestScope:
    """Test cases for the Scope enum."""

    def test_scope_values(self):
        """Test that scopes have the expected string values."""
        assert Scope.TRANSIENT.value == "transient"
        assert Scope.SINGLETON.value == "singleton"
        assert Scope.CUSTOM.value == "custom"

    def test_scope_is_string(self):
        """Test that Scope members compare equal to their values."""
        assert Scope.SINGLETON == "singleton"
        assert isinstance(Scope.TRANSIENT, str)

    def test_scope_str(self):
        """Test string conversion of scopes."""
        assert str(Scope.TRANSIENT) == "transient"

    def test_scope_from_value(self):
        """Test that scopes can be looked up by value."""
        assert Scope("custom") is Scope.CUSTOM


class TestStrategy:
    """Test cases for the Strategy enum."""

    def test_strategy_members(self):
        """Test that all construction strategies exist."""
        assert {member.value for member in Strategy} == {"type", "constant", "factory"}

    def test_strategy_str(self):
        """Test string conversion of strategies."""
        assert str(Strategy.FACTORY) == "factory"


class TestTargetKind:
    """Test cases for the TargetKind enum."""

    def test_target_kind_members(self):
        """Test that both kinds of injection targets exist."""
        assert str(TargetKind.PARAMETER) == "parameter"
        assert str(TargetKind.PROPERTY) == "property"


class TestInvocationState:
    """Test cases for the InvocationState enum."""

    def test_invocation_states(self):
        """Test that the invocation state machine has four states."""
        assert [state.value for state in InvocationState] == ["pending", "in_link", "completed", "faulted"]
