"""
Testing utilities module.

Provides helpers and utilities for testing applications using woven-di.
"""

from .utilities import TestKernel, create_mock_kernel

__all__ = [
    "TestKernel",
    "create_mock_kernel",
]
