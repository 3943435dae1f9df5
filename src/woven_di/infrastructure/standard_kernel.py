from typing import Optional

from woven_di.application import Kernel
from woven_di.domain import IMemberSource, ITypeSource, KernelSettings
from woven_di.infrastructure.member_sources import AnnotatedMemberSource
from woven_di.infrastructure.type_sources import ModuleTypeSource


class StandardKernel(Kernel):
    """Kernel wired with the default collaborators.

    Convention scanning uses ``ModuleTypeSource`` and attribute injection
    uses ``AnnotatedMemberSource`` unless other implementations are given.
    """

    def __init__(
        self,
        settings: Optional[KernelSettings] = None,
        type_source: Optional[ITypeSource] = None,
        member_source: Optional[IMemberSource] = None,
    ) -> None:
        super().__init__(
            settings=settings,
            type_source=type_source or ModuleTypeSource(),
            member_source=member_source or AnnotatedMemberSource(),
        )
