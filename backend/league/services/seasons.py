from flask import current_app

from league import db
from league.errors import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from league.models import Game, Season, Team


def load_season(season_id) -> Season:
    season = db.session.get(Season, season_id)
    if season is None:
        raise NotFoundError.for_resource('Season', season_id)
    return season


def active_season():
    return Season.query.filter_by(is_active=True).first()


def list_seasons():
    return Season.query.order_by(Season.year.desc(), Season.start_date.desc()).all()


def season_summary(season: Season) -> dict:
    payload = season.to_dict()
    payload['teamCount'] = Team.query.filter_by(season_id=season.id).count()
    payload['gamesCount'] = Game.query.filter_by(season_id=season.id).count()
    payload['gamesPlayed'] = Game.query.filter_by(season_id=season.id, status='final').count()
    return payload


def _check_dates(start_date, end_date):
    if start_date is not None and end_date is not None and end_date <= start_date:
        raise ValidationError({'endDate': ['End date must be after start date']})


def _check_unique(name, year, exclude_id=None):
    query = Season.query.filter(Season.name == name, Season.year == year)
    if exclude_id is not None:
        query = query.filter(Season.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"A season named '{name}' already exists for {year}")


def create_season(fields, user_id=None) -> Season:
    _check_dates(fields['start_date'], fields['end_date'])
    _check_unique(fields['name'], fields['year'])
    season = Season(
        name=fields['name'],
        year=fields['year'],
        start_date=fields['start_date'],
        end_date=fields['end_date'],
        registration_open=bool(fields.get('registration_open')),
        is_active=False,
    )
    db.session.add(season)
    db.session.flush()
    if fields.get('is_active'):
        _make_active(season)
    db.session.commit()
    current_app.logger.info(f"[season-create] season={season.id} user={user_id} name={season.name!r}")
    return season


def update_season(season_id, fields, user_id=None) -> Season:
    season = load_season(season_id)
    _check_dates(fields.get('start_date', season.start_date), fields.get('end_date', season.end_date))
    if 'name' in fields or 'year' in fields:
        _check_unique(fields.get('name', season.name), fields.get('year', season.year), exclude_id=season.id)
    for attr in ('name', 'year', 'start_date', 'end_date', 'registration_open'):
        if attr in fields:
            setattr(season, attr, fields[attr])
    if fields.get('is_active'):
        _make_active(season)
    elif fields.get('is_active') is False:
        season.is_active = False
    db.session.commit()
    current_app.logger.info(f"[season-update] season={season.id} user={user_id} fields={sorted(fields)}")
    return season


def _make_active(season: Season):
    Season.query.filter(Season.id != season.id, Season.is_active.is_(True)).update(
        {Season.is_active: False}, synchronize_session='fetch'
    )
    season.is_active = True


def activate_season(season_id, user_id=None) -> Season:
    season = load_season(season_id)
    _make_active(season)
    db.session.commit()
    current_app.logger.info(f"[season-activate] season={season.id} user={user_id}")
    return season


def delete_season(season_id, user_id=None):
    season = load_season(season_id)
    if season.is_active:
        raise BusinessRuleError('Cannot delete the active season')
    if Game.query.filter_by(season_id=season.id).count():
        raise BusinessRuleError('Cannot delete a season that has games scheduled')
    Team.query.filter_by(season_id=season.id).delete()
    db.session.delete(season)
    db.session.commit()
    current_app.logger.info(f"[season-delete] season={season_id} user={user_id}")
