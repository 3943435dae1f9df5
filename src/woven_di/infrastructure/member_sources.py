import logging
from typing import Annotated, Any, Dict, List, Sequence, Type, get_args, get_origin, get_type_hints

from woven_di.application.introspection import collection_element
from woven_di.domain import IMemberSource, Inject, MemberDescriptor

logger = logging.getLogger(__name__)


class AnnotatedMemberSource(IMemberSource):
    """Reports class attributes annotated with an ``Inject`` marker.

    Example:
        >>> class AttributedCaesarSalad:
        ...     extra: Annotated[Ingredient, Inject()]
        >>>
        >>> AnnotatedMemberSource().get_injectable_members(AttributedCaesarSalad)
        [MemberDescriptor(name='extra', contract=Ingredient, ...)]
    """

    def __init__(self) -> None:
        self._cache: Dict[Type, List[MemberDescriptor]] = {}

    def get_injectable_members(self, owner: Type) -> Sequence[MemberDescriptor]:
        members = self._cache.get(owner)
        if members is None:
            members = self._cache[owner] = self._scan(owner)
        return members

    def _scan(self, owner: Type) -> List[MemberDescriptor]:
        try:
            hints = get_type_hints(owner, include_extras=True)
        except NameError as exc:
            logger.warning("'%s' name error retrieving %s type hints", exc.name, owner.__qualname__)
            return []
        except TypeError:
            return []

        members = []
        for name, hint in hints.items():
            marker = _inject_marker(hint)
            if marker is None:
                continue
            contract, container = collection_element(get_args(hint)[0])
            members.append(
                MemberDescriptor(
                    name=name,
                    contract=contract,
                    owner=owner,
                    qualifier=marker.name,
                    is_collection=container is not None,
                )
            )
        return members


def _inject_marker(hint: Any) -> Any:
    if get_origin(hint) is not Annotated:
        return None
    for metadata in get_args(hint)[1:]:
        if isinstance(metadata, Inject):
            return metadata
    return None
