"""
Infrastructure layer - Default collaborators and integrations.

This layer contains the type source, the member source, ready-made
interceptors and testing tools. It depends on both Application and Domain layers.
"""

from . import testing
from .interceptors import LoggingInterceptor
from .member_sources import AnnotatedMemberSource
from .standard_kernel import StandardKernel
from .type_sources import ModuleTypeSource

__all__ = [
    "testing",
    "StandardKernel",
    "ModuleTypeSource",
    "AnnotatedMemberSource",
    "LoggingInterceptor",
]
