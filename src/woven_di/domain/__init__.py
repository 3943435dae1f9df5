"""
Domain layer - Core business logic and models.

This layer contains the fundamental rules and models for dependency injection
and interception. It has no dependencies on other layers.
"""

from .enums import InvocationState, Scope, Strategy, TargetKind
from .exceptions import (
    ActivationFailure,
    AmbiguousBinding,
    BindingError,
    CyclicDependency,
    DIException,
    DisposalError,
    InterceptionFailure,
    KernelDisposedError,
    NoBindingFound,
)
from .interfaces import IInterceptor, IKernel, IMemberSource, IResolver, IScopeManager, ITypeSource
from .markers import Inject
from .models import (
    Binding,
    CacheEntry,
    InterceptorBinding,
    KernelSettings,
    MemberDescriptor,
    ResolutionContext,
    Target,
    TypeDescriptor,
)

# Rebuild Pydantic models to resolve forward references
ResolutionContext.model_rebuild()

__all__ = [
    # Enums
    "Scope",
    "Strategy",
    "TargetKind",
    "InvocationState",
    # Exceptions
    "DIException",
    "NoBindingFound",
    "AmbiguousBinding",
    "CyclicDependency",
    "ActivationFailure",
    "InterceptionFailure",
    "DisposalError",
    "BindingError",
    "KernelDisposedError",
    # Interfaces
    "IKernel",
    "IResolver",
    "IScopeManager",
    "IInterceptor",
    "ITypeSource",
    "IMemberSource",
    # Markers
    "Inject",
    # Models
    "Binding",
    "CacheEntry",
    "InterceptorBinding",
    "KernelSettings",
    "MemberDescriptor",
    "ResolutionContext",
    "Target",
    "TypeDescriptor",
]
