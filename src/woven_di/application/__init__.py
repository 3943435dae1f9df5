"""
Application layer - Use cases and orchestration.

This layer contains the kernel and the components it orchestrates.
It depends only on the Domain layer.
"""

from .builders import BindingBuilder, ConventionBuilder, InterceptionBuilder
from .disposer import Disposer
from .interception import InterceptionProxy, InterceptorChainBuilder, Invocation, ProxyInvoker
from .kernel import Kernel, ScopeBlock
from .modules import KernelModule
from .registry import BindingRegistry
from .resolver import ActivationResolver
from .scope_manager import ScopeManager

__all__ = [
    "Kernel",
    "ScopeBlock",
    "KernelModule",
    "BindingRegistry",
    "ActivationResolver",
    "ScopeManager",
    "Disposer",
    "Invocation",
    "ProxyInvoker",
    "InterceptorChainBuilder",
    "InterceptionProxy",
    "BindingBuilder",
    "InterceptionBuilder",
    "ConventionBuilder",
]
