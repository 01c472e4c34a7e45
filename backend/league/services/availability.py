from datetime import datetime, timezone

from flask import current_app

from league import db
from league.errors import AuthorizationError, BusinessRuleError
from league.models import AVAILABILITY_STATUSES, CANCELLED, FINAL, Availability, Game, Player, User

RESPONSE_STATUSES = tuple(s for s in AVAILABILITY_STATUSES if s != 'no_response')
CLOSED_STATUSES = (FINAL, CANCELLED)


def _player_for(session, game: Game):
    player = (
        Player.query.filter(
            Player.user_id == session.user_id,
            Player.team_id.in_(list(game.team_ids)),
            Player.is_active.is_(True),
        )
        .first()
    )
    if player is None:
        raise AuthorizationError('You are not on a roster for this game')
    return player


def set_availability(session, game: Game, status, note=None) -> Availability:
    if game.status in CLOSED_STATUSES:
        raise BusinessRuleError(f"Cannot update availability for a game that is '{game.status}'")
    player = _player_for(session, game)
    record = Availability.query.filter_by(game_id=game.id, player_id=player.id).first()
    if record is None:
        record = Availability(game_id=game.id, player_id=player.id)
        db.session.add(record)
    record.status = status
    record.note = note
    record.responded_at = datetime.now(timezone.utc)
    db.session.commit()
    current_app.logger.info(f"[availability] game={game.id} player={player.id} status={status}")
    return record


def my_availability(session, game: Game):
    player = _player_for(session, game)
    record = Availability.query.filter_by(game_id=game.id, player_id=player.id).first()
    if record is None:
        return {'gameId': game.id, 'playerId': player.id, 'status': 'no_response', 'note': None, 'respondedAt': None}
    return record.to_dict()


def team_summary(session, game: Game, team_id) -> dict:
    """Roster-wide responses for one side of a game; silent players show as no_response."""
    if team_id not in game.team_ids:
        raise BusinessRuleError('Team is not playing in this game')
    if not (session.is_oversight or session.manages(team_id)):
        raise AuthorizationError('Only the team manager can view availability')

    roster = (
        Player.query.filter_by(team_id=team_id, is_active=True)
        .join(User, Player.user_id == User.id)
        .order_by(User.full_name.asc())
        .all()
    )
    responses = {
        r.player_id: r for r in Availability.query.filter_by(game_id=game.id).all()
    }
    counts = {status: 0 for status in RESPONSE_STATUSES + ('no_response',)}
    players = []
    for player in roster:
        record = responses.get(player.id)
        status = record.status if record else 'no_response'
        counts[status] = counts.get(status, 0) + 1
        players.append({
            'playerId': player.id,
            'fullName': player.user.full_name,
            'jerseyNumber': player.jersey_number,
            'primaryPosition': player.primary_position,
            'status': status,
            'note': record.note if record else None,
            'respondedAt': record.to_dict()['respondedAt'] if record else None,
        })
    return {'gameId': game.id, 'teamId': team_id, 'counts': counts, 'players': players}
