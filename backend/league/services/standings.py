from league.models import FINAL, Game, Team


def _blank_row(team: Team) -> dict:
    return {
        'team': team.summary_dict(),
        'teamId': team.id,
        'gamesPlayed': 0,
        'wins': 0,
        'losses': 0,
        'ties': 0,
        'winPct': 0.0,
        'runsScored': 0,
        'runsAllowed': 0,
        'runDifferential': 0,
        'gamesBehind': 0.0,
        'lastTen': [],
        'streak': None,
    }


def compute_standings(season_id) -> list:
    """Standings for a season built from its final games.

    Ties count as half a win toward win percentage. Rows are ordered by
    win percentage, then wins, then run differential.
    """
    teams = Team.query.filter_by(season_id=season_id).all()
    rows = {team.id: _blank_row(team) for team in teams}
    games = (
        Game.query.filter_by(season_id=season_id, status=FINAL)
        .order_by(Game.game_date.asc(), Game.id.asc())
        .all()
    )
    for game in games:
        for team_id, scored, allowed in (
            (game.home_team_id, game.home_score, game.away_score),
            (game.away_team_id, game.away_score, game.home_score),
        ):
            row = rows.get(team_id)
            if row is None:
                continue
            row['gamesPlayed'] += 1
            row['runsScored'] += scored
            row['runsAllowed'] += allowed
            if scored > allowed:
                row['wins'] += 1
                result = 'W'
            elif scored < allowed:
                row['losses'] += 1
                result = 'L'
            else:
                row['ties'] += 1
                result = 'T'
            row['lastTen'].append(result)

    for row in rows.values():
        played = row['gamesPlayed']
        row['winPct'] = round((row['wins'] + 0.5 * row['ties']) / played, 3) if played else 0.0
        row['runDifferential'] = row['runsScored'] - row['runsAllowed']
        row['streak'] = _streak(row['lastTen'])
        recent = row['lastTen'][-10:]
        row['lastTen'] = '-'.join(str(recent.count(r)) for r in ('W', 'L', 'T'))

    ordered = sorted(rows.values(), key=lambda r: (-r['winPct'], -r['wins'], -r['runDifferential'], r['team']['name']))
    if ordered:
        leader = ordered[0]
        for row in ordered:
            row['gamesBehind'] = ((leader['wins'] - row['wins']) + (row['losses'] - leader['losses'])) / 2
    for rank, row in enumerate(ordered, start=1):
        row['rank'] = rank
    return ordered


def _streak(results):
    if not results:
        return None
    last = results[-1]
    length = 0
    for result in reversed(results):
        if result != last:
            break
        length += 1
    return f'{last}{length}'
