from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from league import db

health = Blueprint('health', __name__)


@health.route('/health', methods=['GET'])
def health_check():
    try:
        db.session.execute(text('SELECT 1'))
        database = 'ok'
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[health] database check failed: {exc}")
        database = 'unavailable'
    payload = {'status': 'ok' if database == 'ok' else 'degraded', 'database': database}
    return jsonify({'success': database == 'ok', 'data': payload}), 200 if database == 'ok' else 503
