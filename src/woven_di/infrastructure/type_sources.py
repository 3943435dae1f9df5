import importlib
import inspect
import logging
import pkgutil
from types import ModuleType
from typing import Any, Iterable, List, Sequence

from woven_di.domain import ITypeSource, TypeDescriptor

logger = logging.getLogger(__name__)


class ModuleTypeSource(ITypeSource):
    """Lists the classes defined in a module, a package or a namespace class.

    - Modules yield the classes they define (not the ones they import).
    - Packages also yield the classes of every submodule.
    - Classes yield their nested classes.
    - Iterables of classes are passed through.

    Classes are listed in definition order, without duplicates.
    """

    def __init__(self, recursive: bool = True) -> None:
        """Initialize the type source.

        Args:
            recursive: Walk the submodules of packages.
        """
        self._recursive = recursive

    def list_candidate_types(self, origin: Any) -> Sequence[TypeDescriptor]:
        candidates: List[type] = []
        for candidate in self._collect(origin):
            if candidate not in candidates:
                candidates.append(candidate)
        logger.debug("Found %d candidate type(s) in %r", len(candidates), origin)
        return [TypeDescriptor.from_type(candidate) for candidate in candidates]

    def _collect(self, origin: Any) -> Iterable[type]:
        if isinstance(origin, ModuleType):
            yield from self._module_classes(origin)
            if self._recursive and hasattr(origin, "__path__"):
                for info in pkgutil.walk_packages(origin.__path__, prefix=f"{origin.__name__}."):
                    yield from self._module_classes(importlib.import_module(info.name))
        elif inspect.isclass(origin):
            yield from (member for member in vars(origin).values() if inspect.isclass(member))
        else:
            yield from (member for member in origin if inspect.isclass(member))

    def _module_classes(self, module: ModuleType) -> Iterable[type]:
        for member in vars(module).values():
            if inspect.isclass(member) and member.__module__ == module.__name__:
                yield member
