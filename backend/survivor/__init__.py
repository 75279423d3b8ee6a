from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from survivor.main import main
    flask_app.register_blueprint(main)

    from survivor.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers on the initialized socketio instance
    from survivor.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo session."""
        from survivor.repository import SqlSessionRepository
        from survivor.services.simulation.builder import validate_submission
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            repository = SqlSessionRepository(code_length=flask_app.config['GAME_CODE_LENGTH'], emit=False)
            code = repository.create_session('Demo Host', {'allowLateJoin': True})
            seeds = [
                ('Alice', {'name': 'Prairie Runner', 'kingdom': 'Animal', 'environment': 'Grassland',
                           'stats': {'agility': 5, 'resilience': 3}}),
                ('Bob', {'name': 'Sand Lily', 'kingdom': 'Plant', 'environment': 'Desert',
                         'stats': {'waterStorage': 4, 'heatResistance': 4, 'rootDepth': 3}}),
                ('Cara', {'name': 'Sewer Bug', 'kingdom': 'Bacteria', 'environment': 'Jungle',
                          'stats': {'antibioticResistance': 4, 'opportunism': 4}}),
            ]
            for player, organism in seeds:
                repository.add_player(code, player)
                repository.add_organism(code, player, validate_submission(organism, player))

            print(f'Database has been reset and seeded! Demo game code: {code}')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
