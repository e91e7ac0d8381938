from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    return [origin.strip() for origin in (config.get('FRONTEND_URL') or '').split(',') if origin.strip()]


def check_database(flask_app):
    """Ping the database; in production a failure is logged instead of raised."""
    with flask_app.app_context():
        try:
            db.session.execute(text('SELECT 1'))
            flask_app.logger.info('[startup] database connected')
            return True
        except SQLAlchemyError as exc:
            db.session.rollback()
            if flask_app.config.get('APP_ENV') != 'production':
                raise
            flask_app.logger.warning(f"[startup] database unavailable, continuing without it: {exc}")
            return False
        finally:
            db.session.remove()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = _allowed_origins(flask_app.config)
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=origins,
         allow_headers=['Content-Type', 'Authorization'])
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from rps.errors import register_error_handlers
    register_error_handlers(flask_app)

    from rps.main import main
    flask_app.register_blueprint(main)

    from rps.api.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/api/auth')

    from rps.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    from rps.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Bearer-token authentication for login_required views
    from rps.api.auth import load_player_from_request, reject_unauthorized
    login_manager.request_loader(load_player_from_request)
    login_manager.unauthorized_handler(reject_unauthorized)

    from rps.cli import db_reset_command, play_command
    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(play_command)

    if flask_app.config.get('CHECK_DB_ON_STARTUP'):
        check_database(flask_app)

    flask_app.logger.info(f"[startup] environment={flask_app.config.get('APP_ENV')}")
    return flask_app
