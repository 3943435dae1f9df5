from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Inject(BaseModel):
    """Marks an annotated class attribute as an injection point.

    Used as ``typing.Annotated`` metadata on a class-level annotation. The
    kernel resolves the annotated contract after construction and assigns it,
    unless a property value was configured explicitly on the binding.

    Attributes:
        name: Optional qualifier used when resolving the member.

    Example:
        >>> class CaesarSalad:
        ...     extra: Annotated[Ingredient, Inject()]
        ...     dressing: Annotated[Ingredient, Inject(name="sauce")]
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, description="Qualifier name used to resolve the member.")
