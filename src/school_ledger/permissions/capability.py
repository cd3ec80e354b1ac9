from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError

DASHBOARD = "dashboard"
TERM_ROLLOVER = "term_rollover"


def parse_sections(raw: Any) -> FrozenSet[str]:
    """Sections from either ``["fees", ...]`` or ``{"fees": True, ...}``."""
    if isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset(str(s) for s in raw if s)
    if isinstance(raw, Mapping):
        return frozenset(str(k) for k, v in raw.items() if v is True)
    return frozenset()


@dataclass(frozen=True)
class Capability:
    """What the current identity may do, evaluated once per request."""

    role: Optional[str] = None
    sections: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_permissions(cls, raw: Optional[Mapping]) -> "Capability":
        raw = raw or {}
        return cls(role=raw.get("role") or None, sections=parse_sections(raw.get("sections")))

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def allows(self, section) -> bool:
        name = getattr(section, "value", section)
        if name == DASHBOARD:
            return True
        if name == TERM_ROLLOVER:
            return self.is_admin
        return self.is_admin or name in self.sections

    def require(self, section) -> None:
        if not self.allows(section):
            raise AuthorizationError(f"You do not have access to {getattr(section, 'value', section)}")

