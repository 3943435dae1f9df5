"""Application layer - Type introspection helpers shared by resolution and binding."""

import collections.abc
import functools
import inspect
import logging
import types
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union, get_args, get_origin, get_type_hints

logger = logging.getLogger(__name__)

_UNION_ORIGINS = (Union, getattr(types, "UnionType", Union))

_COLLECTION_ORIGINS = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.Iterable,
    collections.abc.Collection,
)


def collection_element(annotation: Any) -> Tuple[Any, Optional[type]]:
    """Split a "sequence of contract" annotation into its element and container.

    Args:
        annotation: A resolved type hint.

    Returns:
        ``(element, container)`` where ``container`` is ``list`` or ``tuple``
        for collection annotations and ``None`` otherwise.

    Example:
        >>> collection_element(List[Ingredient])
        (Ingredient, list)
        >>> collection_element(Ingredient)
        (Ingredient, None)
    """
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin not in _COLLECTION_ORIGINS:
        return annotation, None
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0], tuple
        return annotation, None
    if len(args) == 1:
        return args[0], list
    return annotation, None


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Turn ``Optional[X]`` into ``(X, True)``; anything else into ``(annotation, False)``."""
    if get_origin(annotation) in _UNION_ORIGINS:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1 and len(get_args(annotation)) == 2:
            return members[0], True
    return annotation, False


def is_provider(value: Any) -> bool:
    """True if a configured value should be called with the resolution context.

    Plain functions, lambdas, bound methods and ``functools.partial`` objects
    are providers; classes, enum members and other objects are literal values.
    """
    return inspect.isfunction(value) or inspect.ismethod(value) or isinstance(value, functools.partial)


def is_self_bindable(contract: Any) -> bool:
    """True if ``contract`` is a concrete, user-defined class that can be built implicitly."""
    if not inspect.isclass(contract) or inspect.isabstract(contract):
        return False
    if getattr(contract, "_is_protocol", False):
        return False
    if issubclass(contract, Enum) or contract.__module__ == "builtins":
        return False
    return True


def conforms_to(implementation: type, contract: Any) -> bool:
    """Check that ``implementation`` can stand in for ``contract``.

    Uses ``issubclass`` when the contract supports it and falls back to a
    structural check of public members for non-runtime protocols.
    """
    if not inspect.isclass(contract):
        return True
    try:
        return issubclass(implementation, contract)
    except TypeError:
        required = [name for name in vars(contract) if not name.startswith("_")]
        return all(hasattr(implementation, name) for name in required)


def init_type_hints(cls: type) -> Dict[str, Any]:
    """Return the resolved type hints of a class constructor."""
    try:
        init = inspect.getattr_static(cls, "__init__")
        return get_type_hints(init)
    except TypeError:
        return {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        return {}


def constructor_signature(cls: type) -> Optional[inspect.Signature]:
    """Return the signature used to construct ``cls``, or None if it cannot be inspected."""
    try:
        return inspect.signature(cls)
    except (TypeError, ValueError):
        return None
