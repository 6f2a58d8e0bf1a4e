from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_OFFICE_LABEL
from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """Who is acting, as handed in by the identity provider.

    Note: the engine never looks users up itself; audit stamps come from here.
    """

    user_id: int
    role: Role
    display_name: str = ""
    office_id: Optional[int] = None

    @property
    def label(self) -> str:
        if self.display_name:
            return self.display_name
        return DEFAULT_OFFICE_LABEL if self.is_staff else str(self.user_id)

    @property
    def is_staff(self) -> bool:
        return self.role in {Role.OFFICE, Role.ADMIN}
