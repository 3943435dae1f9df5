"""Application layer - Reusable units of binding declarations."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from woven_di.domain import BindingError

if TYPE_CHECKING:
    from woven_di.application.builders import BindingBuilder
    from woven_di.application.kernel import Kernel


class KernelModule(ABC):
    """Groups related bindings so they can be loaded into a kernel together.

    Subclasses implement ``load`` and declare bindings with ``self.bind``.
    Modules are identified by ``name``, which defaults to the class name.

    Example:
        >>> class IngredientModule(KernelModule):
        ...     def load(self) -> None:
        ...         self.bind(Ingredient).to(Steak)
        ...         self.bind(Ingredient).to(SauceBearnaise)
        >>>
        >>> kernel.load(IngredientModule)
    """

    name: Optional[str] = None

    def __init__(self) -> None:
        self._kernel: Optional["Kernel"] = None

    @property
    def module_name(self) -> str:
        return self.name or type(self).__name__

    @property
    def kernel(self) -> "Kernel":
        if self._kernel is None:
            raise BindingError(f"Module {self.module_name} is not loaded into a kernel")
        return self._kernel

    def on_load(self, kernel: "Kernel") -> None:
        """Attach to ``kernel`` and declare the module's bindings."""
        self._kernel = kernel
        self.load()

    @abstractmethod
    def load(self) -> None:
        """Declare the module's bindings."""

    def bind(self, contract: Any) -> "BindingBuilder":
        return self.kernel.bind(contract)

    def rebind(self, contract: Any) -> "BindingBuilder":
        return self.kernel.rebind(contract)
