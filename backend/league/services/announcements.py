from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import or_

from league import db
from league.errors import NotFoundError
from league.models import Announcement

FIELDS = ('title', 'content', 'is_pinned', 'priority', 'expires_at', 'season_id')


def load_announcement(announcement_id) -> Announcement:
    announcement = db.session.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFoundError.for_resource('Announcement', announcement_id)
    return announcement


def list_published(season_id=None, now=None, limit=None):
    """Published, unexpired announcements: pinned first, then priority, then newest."""
    now = now or datetime.now(timezone.utc)
    query = Announcement.query.filter(
        Announcement.is_published.is_(True),
        or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
    )
    if season_id is not None:
        query = query.filter(or_(Announcement.season_id.is_(None), Announcement.season_id == season_id))
    query = query.order_by(
        Announcement.is_pinned.desc(),
        Announcement.priority.desc(),
        Announcement.published_at.desc(),
        Announcement.id.desc(),
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def list_all():
    return Announcement.query.order_by(Announcement.created_at.desc(), Announcement.id.desc()).all()


def _apply_publish(announcement, publish):
    if publish and not announcement.is_published:
        announcement.is_published = True
        announcement.published_at = datetime.now(timezone.utc)
    elif publish is False:
        announcement.is_published = False
        announcement.published_at = None


def create_announcement(fields, author_id) -> Announcement:
    announcement = Announcement(author_id=author_id, priority=0, is_pinned=False)
    for attr in FIELDS:
        if fields.get(attr) is not None:
            setattr(announcement, attr, fields[attr])
    _apply_publish(announcement, fields.get('is_published', False))
    db.session.add(announcement)
    db.session.commit()
    current_app.logger.info(f"[announcement-create] announcement={announcement.id} user={author_id}")
    return announcement


def update_announcement(announcement_id, fields, user_id=None) -> Announcement:
    announcement = load_announcement(announcement_id)
    for attr in FIELDS:
        if attr in fields:
            setattr(announcement, attr, fields[attr])
    if 'is_published' in fields:
        _apply_publish(announcement, fields['is_published'])
    db.session.commit()
    current_app.logger.info(f"[announcement-update] announcement={announcement.id} user={user_id} fields={sorted(fields)}")
    return announcement


def delete_announcement(announcement_id, user_id=None):
    announcement = load_announcement(announcement_id)
    db.session.delete(announcement)
    db.session.commit()
    current_app.logger.info(f"[announcement-delete] announcement={announcement_id} user={user_id}")
