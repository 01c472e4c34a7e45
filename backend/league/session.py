"""Explicit caller context handed to services instead of ``current_user``."""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from flask_login import current_user

from league.errors import AuthenticationError, AuthorizationError
from league.roles import Role, has_permission, is_oversight


@dataclass(frozen=True)
class SessionContext:
    user_id: int
    role: Role
    team_ids: FrozenSet[int] = field(default_factory=frozenset)
    managed_team_ids: FrozenSet[int] = field(default_factory=frozenset)
    full_name: Optional[str] = None

    @property
    def is_oversight(self) -> bool:
        return is_oversight(self.role)

    def has_role(self, required) -> bool:
        return has_permission(self.role, required)

    def is_member(self, team_id) -> bool:
        return team_id in self.team_ids or team_id in self.managed_team_ids

    def manages(self, team_id) -> bool:
        return team_id in self.managed_team_ids

    def can_view_team(self, team_id) -> bool:
        return self.is_oversight or self.is_member(team_id)

    def to_dict(self):
        return {
            'userId': self.user_id,
            'role': self.role.slug,
            'teamIds': sorted(self.team_ids),
            'managedTeamIds': sorted(self.managed_team_ids),
        }


def build_session(user) -> SessionContext:
    """Resolve a user's role and team memberships into a SessionContext.

    Membership counts active roster rows; managed teams are those naming the
    user as manager.
    """
    from league.models import Player, Team

    team_ids = frozenset(
        row.team_id for row in Player.query.filter_by(user_id=user.id, is_active=True).all()
    )
    managed = frozenset(t.id for t in Team.query.filter_by(manager_id=user.id).all())
    try:
        role = Role.parse(user.role)
    except ValueError:
        role = Role.PLAYER
    return SessionContext(
        user_id=user.id,
        role=role,
        team_ids=team_ids,
        managed_team_ids=managed,
        full_name=user.full_name,
    )


def current_session() -> SessionContext:
    if not current_user.is_authenticated:
        raise AuthenticationError()
    return build_session(current_user._get_current_object())


def require_role(session: SessionContext, required, message=None) -> None:
    if not session.has_role(required):
        raise AuthorizationError(message or f'{Role.parse(required).slug.title()} access required')
