import logging

import click
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.exceptions import HTTPException

from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()

_HTTP_CODES = {
    400: 'BAD_REQUEST',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
    409: 'CONFLICT',
    415: 'BAD_REQUEST',
    429: 'RATE_LIMITED',
}


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS', []))

    from league.ratelimit import limiter
    limiter.configure(flask_app.config)

    from league.api.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/api/auth')

    from league.api.health import health
    flask_app.register_blueprint(health, url_prefix='/api')

    from league.api.scoring import scoring
    flask_app.register_blueprint(scoring, url_prefix='/api/games')

    from league.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from league.api.seasons import seasons
    flask_app.register_blueprint(seasons, url_prefix='/api/seasons')

    from league.api.teams import teams
    flask_app.register_blueprint(teams, url_prefix='/api/teams')

    from league.api.messages import messages
    flask_app.register_blueprint(messages, url_prefix='/api/teams')

    from league.api.stats import stats
    flask_app.register_blueprint(stats, url_prefix='/api')

    from league.api.announcements import announcements
    flask_app.register_blueprint(announcements, url_prefix='/api/announcements')

    from league.api.availability import availability
    flask_app.register_blueprint(availability, url_prefix='/api/games')

    _register_error_handlers(flask_app)

    # Flask-Login user loader
    from league.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        from league.errors import AuthenticationError, error_response
        return error_response(AuthenticationError())

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo league."""
        from league.seed import seed_demo_league
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            summary = seed_demo_league()
            db.session.commit()
            print(f"Database has been reset and seeded! ({summary})")

    flask_app.cli.add_command(db_reset_command)

    return flask_app


def _register_error_handlers(flask_app):
    from league.errors import ApiError, ConflictError, error_response

    @flask_app.errorhandler(ApiError)
    def handle_api_error(err):
        db.session.rollback()
        if err.status_code >= 500:
            flask_app.logger.error(f"[api-error] {err.code}: {err.message}")
        return error_response(err)

    @flask_app.errorhandler(HTTPException)
    def handle_http_exception(err):
        code = _HTTP_CODES.get(err.code, 'INTERNAL_ERROR' if (err.code or 500) >= 500 else 'BAD_REQUEST')
        response = jsonify({'success': False, 'error': {'code': code, 'message': err.description or err.name}})
        response.status_code = err.code or 500
        return response

    @flask_app.errorhandler(StaleDataError)
    def handle_stale_data(err):
        db.session.rollback()
        flask_app.logger.warning(f"[stale-write] {err}")
        return error_response(ConflictError('The game was updated by another scorer; reload and retry'))

    @flask_app.errorhandler(SQLAlchemyError)
    def handle_db_error(err):
        db.session.rollback()
        flask_app.logger.exception('[db-error] unhandled database error')
        response = jsonify({'success': False, 'error': {'code': 'INTERNAL_ERROR', 'message': 'A database error occurred'}})
        response.status_code = 500
        return response

    @flask_app.errorhandler(Exception)
    def handle_unexpected(err):
        flask_app.logger.exception('[internal-error] unhandled exception')
        response = jsonify({'success': False, 'error': {'code': 'INTERNAL_ERROR', 'message': 'An internal server error occurred'}})
        response.status_code = 500
        return response
