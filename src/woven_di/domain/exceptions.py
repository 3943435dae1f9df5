from typing import Any, List, Optional, Sequence, Tuple


def describe(contract: Any) -> str:
    """Return a readable name for a contract, type or arbitrary key."""
    return getattr(contract, "__name__", None) or repr(contract)


class DIException(Exception):
    """Base exception for DI-related errors."""


class NoBindingFound(DIException):
    """Raised when no binding matches the requested contract.

    Attributes:
        contract: The contract that was requested.
        name: The qualifier name that was requested, if any.
        chain: Contracts being resolved when the lookup failed, root first.
    """

    def __init__(self, contract: Any, name: Optional[str] = None, chain: Optional[Sequence[Any]] = None) -> None:
        self.contract = contract
        self.name = name
        self.chain = list(chain or [])
        message = f"No matching binding available for {describe(contract)}"
        if name is not None:
            message += f" named '{name}'"
        if len(self.chain) > 1:
            message += f". Resolution path: {' -> '.join(describe(c) for c in self.chain)}"
        super().__init__(message)


class AmbiguousBinding(DIException):
    """Raised when more than one binding matches and nothing disambiguates them.

    Attributes:
        contract: The contract that was requested.
        name: The qualifier name that was requested, if any.
        candidates: Descriptions of the competing bindings.
    """

    def __init__(self, contract: Any, candidates: Sequence[str], name: Optional[str] = None) -> None:
        self.contract = contract
        self.name = name
        self.candidates = list(candidates)
        message = f"More than one matching binding available for {describe(contract)}"
        if name is not None:
            message += f" named '{name}'"
        message += f": {', '.join(self.candidates)}"
        super().__init__(message)


class CyclicDependency(DIException):
    """Raised when a binding transitively depends on itself.

    Attributes:
        dependency_chain: Contracts involved in the cycle, first and last being the same.
    """

    def __init__(self, dependency_chain: List[Any]) -> None:
        self.dependency_chain = dependency_chain
        message = f"Cyclic dependency detected: {' -> '.join(describe(c) for c in dependency_chain)}"
        super().__init__(message)


class ActivationFailure(DIException):
    """Raised when a constructor, factory or provider fails while building an instance.

    The original exception is available as ``__cause__`` and ``cause``.

    Attributes:
        contract: The contract whose activation failed.
        cause: The exception raised during construction.
    """

    def __init__(self, contract: Any, cause: BaseException) -> None:
        self.contract = contract
        self.cause = cause
        super().__init__(f"Error activating {describe(contract)}: {type(cause).__name__}: {cause}")


class InterceptionFailure(DIException):
    """Raised when an interceptor breaks chain discipline.

    This occurs when:
    - ``proceed()`` is called twice by the same interceptor.
    - ``proceed()`` is called after the interceptor already returned.
    """


class DisposalError(DIException):
    """Raised after a teardown in which one or more disposals failed.

    Attributes:
        failures: Pairs of (instance, exception) for every failed disposal.
    """

    def __init__(self, failures: List[Tuple[Any, BaseException]]) -> None:
        self.failures = failures
        details = "; ".join(f"{type(instance).__name__}: {exc}" for instance, exc in failures)
        super().__init__(f"{len(failures)} instance(s) failed to dispose: {details}")


class BindingError(DIException):
    """Raised for invalid binding configurations.

    This occurs when:
    - The implementation is not a subclass of the contract.
    - A binding has no construction strategy.
    - A module with the same name is loaded twice.
    """


class KernelDisposedError(DIException):
    """Raised when a disposed kernel is used."""
