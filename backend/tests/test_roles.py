import pytest

from league.channels import can_delete, can_pin, can_post, channel_config
from league.roles import Role, has_permission, is_oversight
from league.session import SessionContext


def test_role_parse_accepts_slugs_ranks_and_members():
    assert Role.parse('manager') is Role.MANAGER
    assert Role.parse(' Admin ') is Role.ADMIN
    assert Role.parse(4) is Role.COMMISSIONER
    assert Role.parse(Role.PLAYER) is Role.PLAYER
    with pytest.raises(ValueError):
        Role.parse('owner')


def test_permission_is_hierarchical():
    assert has_permission('commissioner', 'admin')
    assert has_permission('manager', 'manager')
    assert not has_permission('player', 'manager')
    assert not has_permission('owner', 'player')
    assert not has_permission(None, 'player')


def test_oversight_roles():
    assert is_oversight('admin')
    assert is_oversight(Role.COMMISSIONER)
    assert not is_oversight('manager')


def test_session_membership():
    session = SessionContext(user_id=1, role=Role.MANAGER, team_ids=frozenset({3}), managed_team_ids=frozenset({4}))
    assert session.is_member(3)
    assert session.is_member(4)
    assert not session.is_member(5)
    assert session.manages(4)
    assert not session.manages(3)
    assert session.can_view_team(4)
    assert not session.can_view_team(5)
    assert session.to_dict()['role'] == 'manager'


def test_admin_sees_every_team():
    session = SessionContext(user_id=2, role=Role.ADMIN)
    assert session.can_view_team(99)
    assert can_post(session, 99, 'important')


def test_channel_rules():
    player = SessionContext(user_id=1, role=Role.PLAYER, team_ids=frozenset({3}))
    manager = SessionContext(user_id=2, role=Role.MANAGER, managed_team_ids=frozenset({3}))
    assert can_post(player, 3, 'general')
    assert not can_post(player, 3, 'important')
    assert can_post(manager, 3, 'important')
    assert not can_post(player, 4, 'general')
    assert can_pin(player, 3, 'general')
    assert not can_pin(player, 3, 'important')
    assert channel_config('substitutes')['canAllPost'] is True
    with pytest.raises(ValueError):
        channel_config('random')


class _Message:
    def __init__(self, author_id, team_id):
        self.author_id = author_id
        self.team_id = team_id


def test_delete_rules():
    player = SessionContext(user_id=1, role=Role.PLAYER, team_ids=frozenset({3}))
    teammate = SessionContext(user_id=5, role=Role.PLAYER, team_ids=frozenset({3}))
    manager = SessionContext(user_id=2, role=Role.MANAGER, managed_team_ids=frozenset({3}))
    message = _Message(author_id=1, team_id=3)
    assert can_delete(player, message)
    assert not can_delete(teammate, message)
    assert can_delete(manager, message)
