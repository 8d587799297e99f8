from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or Config.CORS_ORIGINS

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from codetype.routes import main
    flask_app.register_blueprint(main)

    from codetype.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    from codetype.api.profile import profile
    flask_app.register_blueprint(profile, url_prefix='/api/profile')

    from codetype.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from codetype.models import LeaderboardEntry
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed a few scores so the leaderboard is not empty
            seed = [
                ('ada', 92, 98, 'practice', 'python'),
                ('linus', 84, 95, '60s', None),
                ('grace', 71, 100, 'daily', 'c'),
            ]
            for name, wpm, accuracy, mode, language in seed:
                db.session.add(LeaderboardEntry(name=name, wpm=wpm, accuracy=accuracy, mode=mode, language=language))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
