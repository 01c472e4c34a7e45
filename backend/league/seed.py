"""Demo league used by ``flask db-reset``."""

from datetime import date, time, timedelta

from league import db
from league.models import Announcement, Game, Player, Season, Team, User, utcnow
from league.roles import Role

DEMO_PASSWORD = 'password123'

TEAMS = (
    ('Riverside Otters', 'OTT', '#1D4E89', '#F2A541'),
    ('Hilltop Hawks', 'HAWK', '#8C1C13', '#E0E0E0'),
    ('Lakeside Lumberjacks', 'LUM', '#2D6A4F', '#D8F3DC'),
    ('Downtown Dukes', 'DUK', '#3C096C', '#FFD60A'),
)
POSITIONS = ('P', 'C', '1B', '2B', '3B', 'SS', 'LF', 'CF', 'RF')


def _user(email, full_name, role):
    user = User(email=email, full_name=full_name, role=role.slug)
    user.set_password(DEMO_PASSWORD)
    db.session.add(user)
    return user


def seed_demo_league():
    _user('commissioner@league.test', 'Casey Commissioner', Role.COMMISSIONER)
    admin = _user('admin@league.test', 'Avery Admin', Role.ADMIN)

    today = date.today()
    season = Season(
        name='Summer League',
        year=today.year,
        start_date=today - timedelta(days=30),
        end_date=today + timedelta(days=90),
        is_active=True,
        registration_open=True,
    )
    db.session.add(season)
    db.session.flush()

    teams = []
    for index, (name, abbreviation, primary, secondary) in enumerate(TEAMS, start=1):
        manager = _user(f'manager{index}@league.test', f'Manager {abbreviation.title()}', Role.MANAGER)
        db.session.flush()
        team = Team(
            name=name,
            abbreviation=abbreviation,
            primary_color=primary,
            secondary_color=secondary,
            season_id=season.id,
            manager_id=manager.id,
        )
        db.session.add(team)
        db.session.flush()
        db.session.add(Player(user_id=manager.id, team_id=team.id, season_id=season.id,
                              jersey_number='1', primary_position='UTIL', is_captain=True))
        for slot, position in enumerate(POSITIONS, start=2):
            player_user = _user(f'player{index}{slot}@league.test', f'{abbreviation.title()} Player {slot}', Role.PLAYER)
            db.session.flush()
            db.session.add(Player(user_id=player_user.id, team_id=team.id, season_id=season.id,
                                  jersey_number=str(slot * 3), primary_position=position))
        teams.append(team)

    games = 0
    for week in range(3):
        game_day = today + timedelta(days=7 * week - 7)
        for home, away in ((teams[0], teams[1]), (teams[2], teams[3])):
            if week % 2:
                home, away = away, home
            db.session.add(Game(
                season_id=season.id,
                home_team_id=home.id,
                away_team_id=away.id,
                game_date=game_day,
                game_time=time(18, 30),
                location_name='Memorial Park',
                home_inning_scores=[],
                away_inning_scores=[],
            ))
            games += 1

    db.session.add(Announcement(
        author_id=admin.id,
        season_id=season.id,
        title='Welcome to the season',
        content='Schedules are posted. Check your availability for each game.',
        is_published=True,
        published_at=utcnow(),
        is_pinned=True,
        priority=5,
    ))
    return f'{len(teams)} teams, {games} games'
