from enum import Enum


class Scope(str, Enum):
    """Defines how long a resolved instance lives.

    Attributes:
        TRANSIENT: New instance on each resolution, never tracked by the kernel.
        SINGLETON: Single instance shared for the lifetime of the kernel.
        CUSTOM: Single instance per scope key returned by a binding's scope callback.
    """

    TRANSIENT = "transient"
    SINGLETON = "singleton"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value


class Strategy(str, Enum):
    """How a binding produces its instance."""

    TYPE = "type"
    CONSTANT = "constant"
    FACTORY = "factory"

    def __str__(self) -> str:
        return self.value


class TargetKind(str, Enum):
    """Kind of member an injection target represents."""

    PARAMETER = "parameter"
    PROPERTY = "property"

    def __str__(self) -> str:
        return self.value


class InvocationState(str, Enum):
    """Lifecycle of an intercepted call.

    Attributes:
        PENDING: The invocation has not entered the chain yet.
        IN_LINK: An interceptor (or the target) is currently executing.
        COMPLETED: The chain finished normally or was short-circuited.
        FAULTED: An exception escaped the whole chain.
    """

    PENDING = "pending"
    IN_LINK = "in_link"
    COMPLETED = "completed"
    FAULTED = "faulted"

    def __str__(self) -> str:
        return self.value
