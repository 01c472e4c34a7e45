from flask import current_app

from league import db
from league.errors import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from league.models import Player, Season, Team, User
from league.roles import Role, has_permission

TEAM_FIELDS = ('name', 'abbreviation', 'logo_url', 'primary_color', 'secondary_color', 'is_active')
PLAYER_FIELDS = ('jersey_number', 'primary_position', 'secondary_position', 'bats', 'throws', 'is_captain', 'is_active')


def load_team(team_id) -> Team:
    team = db.session.get(Team, team_id)
    if team is None:
        raise NotFoundError.for_resource('Team', team_id)
    return team


def list_teams(season_id=None, include_inactive=False):
    query = Team.query
    if season_id is not None:
        query = query.filter(Team.season_id == season_id)
    if not include_inactive:
        query = query.filter(Team.is_active.is_(True))
    return query.order_by(Team.name.asc()).all()


def roster(team_id):
    return (
        Player.query.filter_by(team_id=team_id, is_active=True)
        .join(User, Player.user_id == User.id)
        .order_by(User.full_name.asc())
        .all()
    )


def team_detail(team: Team) -> dict:
    payload = team.to_dict()
    payload['roster'] = [p.to_dict() for p in roster(team.id)]
    return payload


def _check_unique(season_id, name=None, abbreviation=None, exclude_id=None):
    query = Team.query.filter(Team.season_id == season_id)
    if exclude_id is not None:
        query = query.filter(Team.id != exclude_id)
    if name is not None and query.filter(Team.name == name).first() is not None:
        raise ConflictError(f"A team named '{name}' already exists this season")
    if abbreviation is not None and query.filter(Team.abbreviation == abbreviation).first() is not None:
        raise ConflictError(f"Abbreviation '{abbreviation}' is already taken this season")


def _resolve_manager(manager_id):
    if manager_id is None:
        return None
    manager = db.session.get(User, manager_id)
    if manager is None:
        raise ValidationError({'managerId': ['Manager not found']})
    if not has_permission(manager.role, Role.MANAGER):
        raise ValidationError({'managerId': ['User does not have the manager role']})
    return manager


def create_team(fields, user_id=None) -> Team:
    if db.session.get(Season, fields['season_id']) is None:
        raise ValidationError({'seasonId': ['Season not found']})
    abbreviation = fields['abbreviation'].upper()
    _check_unique(fields['season_id'], fields['name'], abbreviation)
    manager = _resolve_manager(fields.get('manager_id'))
    team = Team(season_id=fields['season_id'], manager_id=manager.id if manager else None)
    for attr in TEAM_FIELDS:
        if fields.get(attr) is not None:
            setattr(team, attr, fields[attr])
    team.abbreviation = abbreviation
    db.session.add(team)
    db.session.commit()
    current_app.logger.info(f"[team-create] team={team.id} season={team.season_id} user={user_id}")
    return team


def update_team(team_id, fields, user_id=None) -> Team:
    team = load_team(team_id)
    if 'abbreviation' in fields:
        fields['abbreviation'] = fields['abbreviation'].upper()
    _check_unique(team.season_id, fields.get('name'), fields.get('abbreviation'), exclude_id=team.id)
    if 'manager_id' in fields:
        manager = _resolve_manager(fields['manager_id'])
        team.manager_id = manager.id if manager else None
    for attr in TEAM_FIELDS:
        if attr in fields:
            setattr(team, attr, fields[attr])
    db.session.commit()
    current_app.logger.info(f"[team-update] team={team.id} user={user_id} fields={sorted(fields)}")
    return team


def _check_jersey(team_id, jersey_number, exclude_id=None):
    if not jersey_number:
        return
    query = Player.query.filter(Player.team_id == team_id, Player.jersey_number == jersey_number)
    if exclude_id is not None:
        query = query.filter(Player.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f'Jersey number {jersey_number} is already taken on this team')


def add_player(team_id, fields, user_id=None) -> Player:
    team = load_team(team_id)
    member = db.session.get(User, fields['user_id'])
    if member is None:
        raise ValidationError({'userId': ['User not found']})
    existing = Player.query.filter_by(user_id=member.id, team_id=team.id, season_id=team.season_id).first()
    if existing is not None and existing.is_active:
        raise ConflictError('Player is already on this team')
    other = Player.query.filter(
        Player.user_id == member.id,
        Player.season_id == team.season_id,
        Player.team_id != team.id,
        Player.is_active.is_(True),
    ).first()
    if other is not None:
        raise BusinessRuleError('Player is already on another team this season')

    _check_jersey(team.id, fields.get('jersey_number'), exclude_id=existing.id if existing else None)
    player = existing or Player(user_id=member.id, team_id=team.id, season_id=team.season_id)
    player.is_active = True
    for attr in PLAYER_FIELDS:
        if fields.get(attr) is not None:
            setattr(player, attr, fields[attr])
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[roster-add] team={team.id} player={player.id} member={member.id} user={user_id}")
    return player


def update_player(team_id, player_id, fields, user_id=None) -> Player:
    player = db.session.get(Player, player_id)
    if player is None or player.team_id != team_id:
        raise NotFoundError.for_resource('Player', player_id)
    if 'jersey_number' in fields:
        _check_jersey(team_id, fields['jersey_number'], exclude_id=player.id)
    for attr in PLAYER_FIELDS:
        if attr in fields:
            setattr(player, attr, fields[attr])
    db.session.commit()
    return player


def remove_player(team_id, player_id, user_id=None):
    player = db.session.get(Player, player_id)
    if player is None or player.team_id != team_id or not player.is_active:
        raise NotFoundError.for_resource('Player', player_id)
    player.is_active = False
    # Free the number for whoever joins next
    player.jersey_number = None
    db.session.commit()
    current_app.logger.info(f"[roster-remove] team={team_id} player={player_id} user={user_id}")
