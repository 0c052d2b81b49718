from datetime import timedelta

from flask import Flask, current_app, g, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException
import click
from config import Config, DEV_SECRET_KEY

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def get_services():
    """Return the service container built for the current app."""
    return current_app.extensions['spinnergy']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    if flask_app.config.get('SECRET_KEY') == DEV_SECRET_KEY and not flask_app.config.get('TESTING'):
        flask_app.logger.warning('[config] SECRET_KEY not set; signing tokens with the development key')

    flask_app.extensions['spinnergy'] = _build_services(flask_app)

    from spinnergy.main import main
    flask_app.register_blueprint(main)

    from spinnergy.api.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/api/auth')

    from spinnergy.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from spinnergy.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @flask_app.before_request
    def reset_request_auth():
        # An app context pushed around several requests shares `g`; resolve the token every time
        g.pop('_login_user', None)
        g.pop('auth_error', None)

    _register_error_handlers(flask_app)
    _register_token_loader()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from spinnergy.stores import demo_accounts
        from spinnergy.stores.sql import SqlAccountStore
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            initial_spins = flask_app.config['INITIAL_SPINS']
            SqlAccountStore(initial_spins).seed(demo_accounts(bcrypt, initial_spins))
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app


def _build_services(flask_app):
    from spinnergy.services import Services
    from spinnergy.services.game import GameEngine, RewardWheel
    from spinnergy.services.leaderboard import LeaderboardRanker
    from spinnergy.services.nutrition import NutritionClient
    from spinnergy.services.sessions import SessionIssuer
    from spinnergy.stores import build_account_store

    cfg = flask_app.config
    store, degraded = build_account_store(flask_app, bcrypt)
    wheel = RewardWheel(
        segments=tuple(cfg['WHEEL_SEGMENTS']),
        extra_rotations=int(cfg['WHEEL_EXTRA_ROTATIONS']),
    )
    return Services(
        store=store,
        sessions=SessionIssuer(
            store,
            bcrypt,
            cfg['SECRET_KEY'],
            ttl=timedelta(hours=int(cfg['TOKEN_TTL_HOURS'])),
            algorithm=cfg['TOKEN_ALGORITHM'],
            logger=flask_app.logger,
        ),
        engine=GameEngine(
            store,
            wheel,
            message_template=cfg['SPIN_MESSAGE'],
            max_attempts=int(cfg['SPIN_MAX_ATTEMPTS']),
            logger=flask_app.logger,
        ),
        leaderboard=LeaderboardRanker(store, max_limit=int(cfg['LEADERBOARD_LIMIT'])),
        nutrition=NutritionClient(
            cfg['NUTRITIONIX_APP_ID'],
            cfg['NUTRITIONIX_APP_KEY'],
            cfg['NUTRITIONIX_URL'],
            timeout=float(cfg['NUTRITIONIX_TIMEOUT_SEC']),
            transport=cfg.get('NUTRITIONIX_TRANSPORT'),
            logger=flask_app.logger,
        ),
        degraded=degraded,
    )


def _register_error_handlers(flask_app):
    from spinnergy.errors import SpinnergyError

    @flask_app.errorhandler(SpinnergyError)
    def handle_spinnergy_error(error):
        return jsonify(error.to_dict()), error.status_code

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error):
        flask_app.logger.exception(f'[error] unhandled {error.__class__.__name__}')
        return jsonify({'message': 'Internal server error'}), 500


def _register_token_loader():
    from spinnergy.api.auth import AccountPrincipal
    from spinnergy.errors import AuthError

    # Bearer tokens only; no cookie sessions
    @login_manager.request_loader
    def load_user_from_request(req):
        scheme, _, token = req.headers.get('Authorization', '').partition(' ')
        if scheme.lower() != 'bearer' or not token.strip():
            g.auth_error = AuthError('Missing bearer token')
            return None
        try:
            account = get_services().sessions.resolve(token.strip())
        except AuthError as exc:
            g.auth_error = exc
            return None
        return AccountPrincipal(account)

    @login_manager.unauthorized_handler
    def unauthorized():
        error = g.pop('auth_error', None) or AuthError()
        return jsonify(error.to_dict()), error.status_code
