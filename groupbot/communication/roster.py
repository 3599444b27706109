"""Group roster model — members and their role tags."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class Role(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"

    @property
    def is_admin(self) -> bool:
        """Owners count as admins."""
        return self in (Role.ADMIN, Role.OWNER)


@dataclass(frozen=True)
class RosterMember:
    id: str
    role: Role = Role.MEMBER
    name: str = ""


class GroupRoster:
    """Ordered set of group members.

    Duplicate ids keep their first position. Rosters are fetched fresh for
    each command and never cached, since roles can change between calls.
    """

    def __init__(self, members: Iterable[RosterMember] = ()):
        seen: set[str] = set()
        ordered: list[RosterMember] = []
        for member in members:
            if member.id in seen:
                continue
            seen.add(member.id)
            ordered.append(member)
        self._members = tuple(ordered)
        self._by_id = {m.id: m for m in self._members}

    @property
    def members(self) -> tuple[RosterMember, ...]:
        return self._members

    @property
    def ids(self) -> list[str]:
        return [m.id for m in self._members]

    def get(self, member_id: str) -> Optional[RosterMember]:
        return self._by_id.get(member_id)

    def role_of(self, member_id: str) -> Optional[Role]:
        member = self._by_id.get(member_id)
        return member.role if member else None

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self):
        return iter(self._members)

    def __contains__(self, member_id: object) -> bool:
        return member_id in self._by_id

    def __repr__(self) -> str:
        return f"GroupRoster({len(self._members)} members)"
