"""
woven-di: Dependency injection kernel with scopes and method interception.

Public API exports for the woven-di package.
"""

# Application exports
from woven_di.application import Invocation, Kernel, KernelModule

# Domain exports
from woven_di.domain import (
    ActivationFailure,
    AmbiguousBinding,
    BindingError,
    CyclicDependency,
    DIException,
    DisposalError,
    IInterceptor,
    Inject,
    InterceptionFailure,
    KernelDisposedError,
    KernelSettings,
    NoBindingFound,
    ResolutionContext,
    Scope,
)

# Infrastructure exports
from woven_di.infrastructure import LoggingInterceptor, StandardKernel

__version__ = "0.1.0"

__all__ = [
    # Kernel
    "Kernel",
    "StandardKernel",
    "KernelModule",
    "KernelSettings",
    "ResolutionContext",
    "Scope",
    "Inject",
    # Interception
    "IInterceptor",
    "Invocation",
    "LoggingInterceptor",
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
]
