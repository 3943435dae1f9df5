"""Unit tests for Disposer."""

import pytest

from woven_di.application.disposer import Disposer, disposal_capability
from woven_di.application.interception import InterceptionProxy, ProxyInvoker
from woven_di.domain import Binding, CacheEntry


class Disposable:
    def __init__(self):
        self.calls = []

    def dispose(self):
        self.calls.append("dispose")

    def close(self):
        self.calls.append("close")


class Closeable:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class Plain:
    pass


def entry_for(instance, **binding_fields):
    return CacheEntry(binding=Binding(contract=type(instance), **binding_fields), scope_key="scope", instance=instance)


class TestDisposalCapability:
    """Test cases for finding how an instance releases resources."""

    def test_dispose_preferred(self):
        """Test that dispose() wins over close()."""
        instance = Disposable()

        disposal_capability(instance)()

        assert instance.calls == ["dispose"]

    def test_close_fallback(self):
        """Test that close() is used when there is no dispose()."""
        instance = Closeable()

        disposal_capability(instance)()

        assert instance.closed

    def test_no_capability(self):
        """Test that plain objects have nothing to call."""
        assert disposal_capability(Plain()) is None


class TestDisposer:
    """Test cases for tracking and disposing instances."""

    def test_track_and_owner_of(self):
        """Test that tracked instances report their entry."""
        disposer = Disposer()
        instance = Disposable()
        entry = entry_for(instance)

        disposer.track(entry)

        assert disposer.owner_of(instance) is entry
        assert disposer.tracked() == [entry]
        assert len(disposer) == 1

    def test_owner_of_untracked(self):
        """Test that untracked instances have no owner."""
        assert Disposer().owner_of(Disposable()) is None

    def test_untrack(self):
        """Test that untracking returns the entry once."""
        disposer = Disposer()
        instance = Disposable()
        entry = entry_for(instance)
        disposer.track(entry)

        assert disposer.untrack(instance) is entry
        assert disposer.untrack(instance) is None
        assert len(disposer) == 0

    def test_dispose_calls_capability(self):
        """Test that disposal reaches the instance."""
        instance = Disposable()

        Disposer().dispose(entry_for(instance))

        assert instance.calls == ["dispose"]

    def test_deactivation_actions_run_first(self):
        """Test that deactivation callbacks run before dispose()."""
        instance = Disposable()
        entry = entry_for(instance, deactivation_actions=[lambda target: target.calls.append("deactivate")])

        Disposer().dispose(entry)

        assert instance.calls == ["deactivate", "dispose"]

    def test_plain_instance(self):
        """Test that instances without capability are skipped silently."""
        Disposer().dispose(entry_for(Plain()))

    def test_dispose_propagates_errors(self):
        """Test that disposal failures reach the caller."""

        class Failing:
            def dispose(self):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            Disposer().dispose(entry_for(Failing()))

    def test_proxy_is_unwrapped(self):
        """Test that disposal bypasses the interceptor chain."""
        calls = []

        class Recording:
            def intercept(self, invocation):
                calls.append(invocation.method_name)
                invocation.proceed()

        instance = Disposable()
        proxy = InterceptionProxy(instance, [Recording()], ProxyInvoker())
        entry = CacheEntry(binding=Binding(contract=Disposable), scope_key="scope", instance=proxy)

        Disposer().dispose(entry)

        assert instance.calls == ["dispose"]
        assert calls == []
