"""Session authorization for board actions.

Roles are resolved once when a session starts and the resulting
``Authorization`` is passed to whatever needs it, instead of being
re-queried per action. Role enforcement proper lives in the backend;
these checks keep the client from issuing requests it knows will be
refused.
"""

import enum
from dataclasses import dataclass, field

from feedback_portal.feedback.errors import PermissionDeniedError


class Role(str, enum.Enum):
    """Board membership roles."""

    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class Permission(str, enum.Enum):
    """Actions gated by role."""

    SUBMIT = "submit"
    VOTE = "vote"
    COMMENT = "comment"
    UPDATE_STATUS = "update_status"
    MODERATE = "moderate"


PERMISSION_ROLES: dict[Permission, frozenset[Role]] = {
    Permission.SUBMIT: frozenset({Role.ADMIN, Role.MEMBER}),
    Permission.VOTE: frozenset({Role.ADMIN, Role.MEMBER}),
    Permission.COMMENT: frozenset({Role.ADMIN, Role.MEMBER}),
    Permission.UPDATE_STATUS: frozenset({Role.ADMIN}),
    Permission.MODERATE: frozenset({Role.ADMIN}),
}


@dataclass(frozen=True)
class Authorization:
    """Roles held by the session user."""

    user_id: str | None
    roles: frozenset[Role] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "Authorization":
        return cls(user_id=None)

    @classmethod
    def from_role_names(cls, user_id: str | None, names: list[str]) -> "Authorization":
        """Build from backend role strings; unknown names are ignored."""
        known = {r.value: r for r in Role}
        return cls(
            user_id=user_id,
            roles=frozenset(known[n] for n in names if n in known),
        )

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def has_role(self, role: Role | str) -> bool:
        value = role.value if isinstance(role, Role) else role
        return any(r.value == value for r in self.roles)

    def can(self, permission: Permission) -> bool:
        if not self.is_authenticated:
            return False
        return bool(self.roles & PERMISSION_ROLES[permission])

    @property
    def can_submit(self) -> bool:
        return self.can(Permission.SUBMIT)

    @property
    def can_vote(self) -> bool:
        return self.can(Permission.VOTE)

    @property
    def can_comment(self) -> bool:
        return self.can(Permission.COMMENT)

    @property
    def can_update_status(self) -> bool:
        return self.can(Permission.UPDATE_STATUS)

    @property
    def can_moderate(self) -> bool:
        return self.can(Permission.MODERATE)

    def require(self, permission: Permission) -> None:
        """Raise PermissionDeniedError unless the session holds ``permission``."""
        if not self.can(permission):
            raise PermissionDeniedError(
                f"User {self.user_id!r} lacks permission {permission.value!r}"
            )
