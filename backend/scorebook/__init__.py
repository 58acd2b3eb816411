from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import logging
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    level = str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper()
    flask_app.logger.setLevel(level)
    # engine modules log through the stdlib logger of their package
    logging.getLogger('scorebook.services.games').setLevel(level)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from scorebook.main import main
    flask_app.register_blueprint(main)

    from scorebook.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from scorebook.api.teams import teams
    flask_app.register_blueprint(teams, url_prefix='/api/teams')

    # Register Socket.IO event handlers on the initialized socketio instance
    from scorebook.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from scorebook.models import User, Team, Player

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return {'success': False, 'message': 'Login required'}, 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            user = User(username='scorekeeper')
            user.set_password('password')
            db.session.add(user)

            rosters = {
                'Home Hawks': ['Avery', 'Blake', 'Casey', 'Devon', 'Emery', 'Finley', 'Gray', 'Harper'],
                'Away Owls': ['Indy', 'Jules', 'Kai', 'Logan', 'Morgan', 'Noel', 'Oakley', 'Parker'],
            }
            for team_name, names in rosters.items():
                team = Team(name=team_name)
                db.session.add(team)
                db.session.flush()
                for number, name in enumerate(names, start=1):
                    db.session.add(Player(name=name, number=number, team_id=team.id))

            db.session.commit()
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
