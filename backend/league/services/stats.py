"""Per-game stat lines and the season leaderboards derived from them."""

from collections import defaultdict

from flask import current_app

from league import db
from league.errors import AuthorizationError, BusinessRuleError, ValidationError
from league.models import (
    FINAL, IN_PROGRESS, PITCHING_DECISIONS, SUSPENDED, BattingStat, Game, PitchingStat, Player,
)

BATTING_MIN_AB = 30
PITCHING_MIN_IP = 15
STAT_ENTRY_STATUSES = (IN_PROGRESS, SUSPENDED, FINAL)

# request key -> model column
BATTING_KEYS = {
    'plateAppearances': 'plate_appearances',
    'atBats': 'at_bats',
    'runs': 'runs',
    'hits': 'hits',
    'doubles': 'doubles',
    'triples': 'triples',
    'homeRuns': 'home_runs',
    'rbi': 'runs_batted_in',
    'walks': 'walks',
    'strikeouts': 'strikeouts',
    'hitByPitch': 'hit_by_pitch',
    'sacrificeFlies': 'sacrifice_flies',
    'sacrificeBunts': 'sacrifice_bunts',
    'stolenBases': 'stolen_bases',
    'caughtStealing': 'caught_stealing',
}
PITCHING_KEYS = {
    'hitsAllowed': 'hits_allowed',
    'runsAllowed': 'runs_allowed',
    'earnedRuns': 'earned_runs',
    'walks': 'walks',
    'strikeouts': 'strikeouts',
    'homeRunsAllowed': 'home_runs_allowed',
    'battersFaced': 'batters_faced',
}

BATTING_SORTS = ('avg', 'obp', 'slg', 'ops', 'hits', 'homeRuns', 'rbi', 'runs', 'stolenBases')
PITCHING_SORTS = ('era', 'whip', 'k9', 'strikeouts', 'wins', 'saves')
# Lower is better for these
ASCENDING_SORTS = ('era', 'whip')


def parse_innings_pitched(value) -> int:
    """'6.2' (or 6.2) -> 20 outs. The fractional digit counts outs, so only .0/.1/.2 exist."""
    text = str(value).strip()
    whole, _, fraction = text.partition('.')
    if not whole.isdigit() or (fraction and fraction not in ('0', '1', '2')):
        raise ValueError(f"'{value}' is not a valid innings pitched value")
    return int(whole) * 3 + int(fraction or 0)


def format_innings_pitched(outs: int) -> str:
    return f'{outs // 3}.{outs % 3}'


def _counting_values(entry, keys, label, errors):
    values = {}
    for key, column in keys.items():
        raw = entry.get(key, 0)
        if raw is None:
            raw = 0
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            errors.setdefault(label, []).append(f'{key} must be a non-negative whole number')
            continue
        values[column] = raw
    return values


def _validate_batting(values, label, errors):
    if values.get('hits', 0) > values.get('at_bats', 0):
        errors.setdefault(label, []).append('Hits cannot exceed at bats')
    extra_base = values.get('doubles', 0) + values.get('triples', 0) + values.get('home_runs', 0)
    if extra_base > values.get('hits', 0):
        errors.setdefault(label, []).append('2B + 3B + HR cannot exceed hits')
    if values.get('strikeouts', 0) > values.get('at_bats', 0):
        errors.setdefault(label, []).append('Strikeouts cannot exceed at bats')
    if not values.get('plate_appearances'):
        values['plate_appearances'] = (
            values.get('at_bats', 0) + values.get('walks', 0) + values.get('hit_by_pitch', 0)
            + values.get('sacrifice_flies', 0) + values.get('sacrifice_bunts', 0)
        )


def _validate_pitching(values, label, errors):
    if values.get('earned_runs', 0) > values.get('runs_allowed', 0):
        errors.setdefault(label, []).append('Earned runs cannot exceed runs allowed')


def _resolve_player(session, game, entry, label, errors):
    player_id = entry.get('playerId')
    player = db.session.get(Player, player_id) if isinstance(player_id, int) else None
    if player is None or player.team_id not in game.team_ids:
        errors.setdefault(label, []).append('Player is not on either team in this game')
        return None
    if not (session.is_oversight or session.manages(player.team_id)):
        raise AuthorizationError('You can only enter stats for your own team')
    return player


def record_game_stats(session, game: Game, batting=None, pitching=None) -> dict:
    """Insert or replace batting and pitching lines for a game.

    Every line is validated before anything is written; a single bad line
    rejects the whole submission.
    """
    if game.status not in STAT_ENTRY_STATUSES:
        raise BusinessRuleError(f"Cannot enter stats for a game that is '{game.status}'")

    errors = {}
    batting_rows = []
    for index, entry in enumerate(batting or [], start=1):
        label = f'batting{index}'
        player = _resolve_player(session, game, entry, label, errors)
        values = _counting_values(entry, BATTING_KEYS, label, errors)
        _validate_batting(values, label, errors)
        if player is not None:
            values['batting_order'] = entry.get('battingOrder')
            values['position_played'] = entry.get('positionPlayed')
            batting_rows.append((player, values))

    pitching_rows = []
    for index, entry in enumerate(pitching or [], start=1):
        label = f'pitching{index}'
        player = _resolve_player(session, game, entry, label, errors)
        values = _counting_values(entry, PITCHING_KEYS, label, errors)
        _validate_pitching(values, label, errors)
        try:
            values['outs_recorded'] = parse_innings_pitched(entry.get('inningsPitched', '0'))
        except ValueError as exc:
            errors.setdefault(label, []).append(str(exc))
        decision = entry.get('decision')
        if decision is not None and decision not in PITCHING_DECISIONS:
            errors.setdefault(label, []).append(f"decision must be one of: {', '.join(PITCHING_DECISIONS)}")
        values['decision'] = decision
        values['is_starter'] = bool(entry.get('isStarter', False))
        if player is not None:
            pitching_rows.append((player, values))

    if errors:
        raise ValidationError(errors)

    for player, values in batting_rows:
        row = BattingStat.query.filter_by(game_id=game.id, player_id=player.id).first()
        if row is None:
            row = BattingStat(game_id=game.id, player_id=player.id, team_id=player.team_id)
            db.session.add(row)
        for column, value in values.items():
            setattr(row, column, value)
    for player, values in pitching_rows:
        row = PitchingStat.query.filter_by(game_id=game.id, player_id=player.id).first()
        if row is None:
            row = PitchingStat(game_id=game.id, player_id=player.id, team_id=player.team_id)
            db.session.add(row)
        for column, value in values.items():
            setattr(row, column, value)
    db.session.commit()
    current_app.logger.info(
        f"[stats-entry] game={game.id} user={session.user_id} batting={len(batting_rows)} pitching={len(pitching_rows)}"
    )
    return game_stats(game)


def game_stats(game: Game) -> dict:
    batting = BattingStat.query.filter_by(game_id=game.id).order_by(BattingStat.team_id, BattingStat.batting_order).all()
    pitching = PitchingStat.query.filter_by(game_id=game.id).order_by(PitchingStat.team_id, PitchingStat.id).all()
    return {
        'gameId': game.id,
        'batting': [row.to_dict() for row in batting],
        'pitching': [row.to_dict() for row in pitching],
    }


def _ratio(numerator, denominator, digits=3):
    return round(numerator / denominator, digits) if denominator else None


def batting_line(totals: dict) -> dict:
    at_bats = totals['at_bats']
    hits = totals['hits']
    total_bases = hits + totals['doubles'] + 2 * totals['triples'] + 3 * totals['home_runs']
    on_base_chances = at_bats + totals['walks'] + totals['hit_by_pitch'] + totals['sacrifice_flies']
    avg = _ratio(hits, at_bats)
    obp = _ratio(hits + totals['walks'] + totals['hit_by_pitch'], on_base_chances)
    slg = _ratio(total_bases, at_bats)
    ops = round(obp + slg, 3) if obp is not None and slg is not None else None
    return {'avg': avg, 'obp': obp, 'slg': slg, 'ops': ops, 'totalBases': total_bases}


def pitching_line(totals: dict) -> dict:
    outs = totals['outs_recorded']
    innings = outs / 3
    return {
        'inningsPitched': format_innings_pitched(outs),
        'era': _ratio(9 * totals['earned_runs'], innings, 2),
        'whip': _ratio(totals['walks'] + totals['hits_allowed'], innings, 2),
        'k9': _ratio(9 * totals['strikeouts'], innings, 2),
    }


def _season_rows(model, season_id, team_id):
    query = model.query.join(Game, model.game_id == Game.id)
    if season_id is not None:
        query = query.filter(Game.season_id == season_id)
    if team_id is not None:
        query = query.filter(model.team_id == team_id)
    return query.all()


def _sort_key(sort_by):
    def key(row):
        value = row.get(sort_by)
        if value is None:
            return float('inf')
        return value if sort_by in ASCENDING_SORTS else -value
    return key


def batting_leaders(season_id=None, team_id=None, min_at_bats=BATTING_MIN_AB, sort_by='avg'):
    totals = defaultdict(lambda: defaultdict(int))
    owners = {}
    for row in _season_rows(BattingStat, season_id, team_id):
        owners[row.player_id] = row
        for field in BattingStat.COUNTING_FIELDS:
            totals[row.player_id][field] += getattr(row, field) or 0
        totals[row.player_id]['games'] += 1

    leaders = []
    for player_id, t in totals.items():
        if t['at_bats'] < min_at_bats:
            continue
        player = owners[player_id].player
        entry = {
            'playerId': player_id,
            'teamId': owners[player_id].team_id,
            'fullName': player.user.full_name if player and player.user else None,
            'games': t['games'],
            'atBats': t['at_bats'],
            'hits': t['hits'],
            'runs': t['runs'],
            'homeRuns': t['home_runs'],
            'rbi': t['runs_batted_in'],
            'walks': t['walks'],
            'strikeouts': t['strikeouts'],
            'stolenBases': t['stolen_bases'],
        }
        entry.update(batting_line(t))
        leaders.append(entry)
    leaders.sort(key=_sort_key(sort_by))
    return leaders


def pitching_leaders(season_id=None, team_id=None, min_innings_pitched=PITCHING_MIN_IP, sort_by='era'):
    totals = defaultdict(lambda: defaultdict(int))
    owners = {}
    for row in _season_rows(PitchingStat, season_id, team_id):
        owners[row.player_id] = row
        t = totals[row.player_id]
        t['outs_recorded'] += row.outs_recorded or 0
        for field in PitchingStat.COUNTING_FIELDS:
            t[field] += getattr(row, field) or 0
        t['games'] += 1
        t['starts'] += 1 if row.is_starter else 0
        t['wins'] += 1 if row.decision == 'W' else 0
        t['losses'] += 1 if row.decision == 'L' else 0
        t['saves'] += 1 if row.decision == 'S' else 0

    leaders = []
    for player_id, t in totals.items():
        if t['outs_recorded'] < min_innings_pitched * 3:
            continue
        player = owners[player_id].player
        entry = {
            'playerId': player_id,
            'teamId': owners[player_id].team_id,
            'fullName': player.user.full_name if player and player.user else None,
            'games': t['games'],
            'starts': t['starts'],
            'wins': t['wins'],
            'losses': t['losses'],
            'saves': t['saves'],
            'strikeouts': t['strikeouts'],
            'walks': t['walks'],
            'hitsAllowed': t['hits_allowed'],
            'earnedRuns': t['earned_runs'],
        }
        entry.update(pitching_line(t))
        leaders.append(entry)
    leaders.sort(key=_sort_key(sort_by))
    return leaders
