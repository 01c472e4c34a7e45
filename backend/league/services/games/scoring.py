from datetime import datetime, timezone
from typing import Optional

from flask import current_app

from league import db
from league.errors import AuthorizationError, BusinessRuleError, ConflictError, NotFoundError
from league.models import FINAL, IN_PROGRESS, SUSPENDED, TOP, Game
from league.roles import Role
from . import validators


def _regulation_innings() -> int:
    return int(current_app.config.get('REGULATION_INNINGS', 9))


def _padded(scores, inning: int):
    """Copy of a per-inning array long enough to hold ``inning``."""
    scores = list(scores or [])
    while len(scores) < inning:
        scores.append(0)
    return scores


def load_game(game_id: int) -> Game:
    game = db.session.get(Game, game_id)
    if game is None:
        raise NotFoundError.for_resource('Game', game_id)
    return game


def authorize_scorer(session, game: Game) -> None:
    """Managers of either team, or league oversight, may score a game."""
    if not session.has_role(Role.MANAGER):
        raise AuthorizationError('Only team managers can score games')
    if session.is_oversight:
        return
    if not any(session.is_member(team_id) for team_id in game.team_ids):
        raise AuthorizationError('You can only score games for your team')


def _check(verdict) -> None:
    valid, reason = verdict
    if not valid:
        raise BusinessRuleError(reason)


def _check_version(game: Game, expected_version: Optional[int]) -> None:
    if expected_version is not None and expected_version != game.version:
        raise ConflictError(
            f'Game is at version {game.version}, not {expected_version}; reload and retry',
            details={'currentVersion': game.version},
        )


def _commit(game: Game, action: str, previous: dict, **extra) -> dict:
    db.session.add(game)
    db.session.commit()
    result = {
        'action': action,
        'previousState': previous,
        'newState': game.scoring_state(_regulation_innings()),
    }
    result.update(extra)
    return result


def _end_half_inning(game: Game) -> None:
    inning = game.current_inning or 1
    half = game.current_inning_half or TOP
    if half == TOP:
        game.away_inning_scores = _padded(game.away_inning_scores, inning)
    else:
        game.home_inning_scores = _padded(game.home_inning_scores, inning)
    game.current_inning, game.current_inning_half = validators.next_half_inning(inning, half)
    game.outs = 0


def start_game(game_id: int, status: str = IN_PROGRESS, expected_version=None, user_id=None) -> dict:
    game = load_game(game_id)
    _check(validators.can_start_game(game.status, status))
    _check_version(game, expected_version)
    previous = game.scoring_state(_regulation_innings())

    game.status = status
    if game.started_at is None:
        game.started_at = datetime.now(timezone.utc)
    if status == IN_PROGRESS:
        # Resuming a suspended game keeps its inning state
        if game.current_inning is None:
            game.current_inning = 1
        if game.current_inning_half is None:
            game.current_inning_half = TOP
        if game.outs is None:
            game.outs = 0

    current_app.logger.info(f"[scoring-start] game={game.id} user={user_id} {previous['status']} -> {status}")
    return _commit(game, 'start', previous)


def record_score(game_id: int, runs: int, expected_version=None, user_id=None) -> dict:
    game = load_game(game_id)
    _check(validators.can_score(game.status))
    _check_version(game, expected_version)
    previous = game.scoring_state(_regulation_innings())

    inning = game.current_inning or 1
    half = game.current_inning_half or TOP
    if half == TOP:
        scores = _padded(game.away_inning_scores, inning)
        scores[inning - 1] += runs
        game.away_inning_scores = scores
        game.away_score = (game.away_score or 0) + runs
    else:
        scores = _padded(game.home_inning_scores, inning)
        scores[inning - 1] += runs
        game.home_inning_scores = scores
        game.home_score = (game.home_score or 0) + runs
    game.current_inning = inning
    game.current_inning_half = half

    current_app.logger.info(f"[scoring-score] game={game.id} user={user_id} inning={inning} half={half} runs={runs}")
    return _commit(game, 'score', previous)


def record_out(game_id: int, count: int = 1, expected_version=None, user_id=None) -> dict:
    game = load_game(game_id)
    _check(validators.can_score(game.status))
    _check_version(game, expected_version)
    previous = game.scoring_state(_regulation_innings())

    game.outs = min((game.outs or 0) + count, 3)
    auto_advanced = False
    if game.outs >= 3:
        _end_half_inning(game)
        auto_advanced = True

    current_app.logger.info(
        f"[scoring-out] game={game.id} user={user_id} count={count} outs={game.outs} auto_advanced={auto_advanced}"
    )
    return _commit(game, 'out', previous, autoAdvanced=auto_advanced)


def advance_inning(game_id: int, force_inning=None, force_half=None, expected_version=None, user_id=None) -> dict:
    if (force_inning is None) != (force_half is None):
        raise ValueError('force_inning and force_half must be given together')
    game = load_game(game_id)
    _check(validators.can_advance(game.status))
    _check_version(game, expected_version)
    previous = game.scoring_state(_regulation_innings())

    if force_inning is not None:
        game.current_inning = force_inning
        game.current_inning_half = force_half
        game.outs = 0
    else:
        _end_half_inning(game)

    current_app.logger.info(
        f"[scoring-advance] game={game.id} user={user_id} forced={force_inning is not None} "
        f"inning={game.current_inning} half={game.current_inning_half}"
    )
    return _commit(game, 'advance', previous)


def end_game(game_id: int, status: str = FINAL, notes: Optional[str] = None, expected_version=None,
             user_id=None) -> dict:
    game = load_game(game_id)
    _check(validators.can_end_game(
        game.status,
        status,
        inning=game.current_inning,
        half=game.current_inning_half,
        home_score=game.home_score or 0,
        away_score=game.away_score or 0,
        regulation_innings=_regulation_innings(),
        outs=game.outs or 0,
        away_inning_scores=game.away_inning_scores,
    ))
    _check_version(game, expected_version)
    previous = game.scoring_state(_regulation_innings())

    game.status = status
    game.ended_at = datetime.now(timezone.utc)
    if notes:
        game.notes = f'{game.notes}\n{notes}' if game.notes else notes

    current_app.logger.info(
        f"[scoring-end] game={game.id} user={user_id} status={status} score={game.away_score}-{game.home_score}"
    )
    return _commit(game, 'end', previous)


def update_game_state(game_id: int, changes: dict, expected_version=None, user_id=None) -> dict:
    """Apply an admin correction to the live-scoring fields.

    ``changes`` uses the model's attribute names. Per-inning arrays, when
    given, replace the run totals; totals never go down once play has
    started. Final games are closed to corrections.
    """
    game = load_game(game_id)
    if game.status == FINAL:
        raise BusinessRuleError('Game has already ended')
    if game.status not in (IN_PROGRESS, SUSPENDED):
        raise BusinessRuleError(f"Cannot correct scoring state of a game that is '{game.status}'")
    _check_version(game, expected_version)
    previous = game.scoring_state(_regulation_innings())

    home_scores = changes.get('home_inning_scores')
    away_scores = changes.get('away_inning_scores')
    home_total = sum(home_scores) if home_scores is not None else changes.get('home_score', game.home_score)
    away_total = sum(away_scores) if away_scores is not None else changes.get('away_score', game.away_score)
    if home_total < game.home_score or away_total < game.away_score:
        raise BusinessRuleError('Scores cannot decrease once a game has started')

    for attr in ('current_inning', 'current_inning_half', 'outs', 'notes'):
        if attr in changes:
            setattr(game, attr, changes[attr])
    if home_scores is not None:
        game.home_inning_scores = list(home_scores)
    if away_scores is not None:
        game.away_inning_scores = list(away_scores)
    game.home_score = home_total
    game.away_score = away_total

    current_app.logger.info(f"[scoring-update] game={game.id} user={user_id} fields={sorted(changes)}")
    return _commit(game, 'update', previous)


def live_games():
    games = (
        Game.query.filter_by(status=IN_PROGRESS)
        .order_by(Game.game_date.asc(), Game.game_time.asc(), Game.id.asc())
        .all()
    )
    return [game.to_dict(_regulation_innings()) for game in games]
