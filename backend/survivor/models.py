from survivor import db
from datetime import datetime
import json
import string
import random

from survivor.services.simulation.types import Organism


DEFAULT_SETTINGS = {
    'allowLateJoin': True,
    'autoAdvance': False,
    'showResults': True,
}


def random_game_code(length=6):
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


def generate_game_code(length=6):
    """Generate a unique, short game code."""
    while True:
        code = random_game_code(length)
        if not GameSession.query.filter_by(code=code).first():
            return code


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), unique=True, index=True, nullable=False)
    host_name = db.Column(db.String(64), nullable=False)
    settings = db.Column(db.Text, nullable=True)  # JSON-encoded dict
    state = db.Column(db.String(32), default='waiting', nullable=False)  # waiting, environment, city, results
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    players = db.relationship('Player', back_populates='session', cascade='all, delete-orphan')
    organisms = db.relationship('OrganismRecord', back_populates='session',
                                cascade='all, delete-orphan', order_by='OrganismRecord.id')

    @property
    def settings_dict(self):
        merged = dict(DEFAULT_SETTINGS)
        try:
            merged.update(json.loads(self.settings) if self.settings else {})
        except ValueError:
            pass
        return merged

    def to_dict(self):
        return {
            'id': self.id,
            'game_code': self.code,
            'host_name': self.host_name,
            'settings': self.settings_dict,
            'state': self.state,
            'players': [p.to_dict() for p in self.players],
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)
    session = db.relationship('GameSession', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'session_id': self.session_id,
        }


class OrganismRecord(db.Model):
    __tablename__ = 'organism'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=True)
    kingdom = db.Column(db.String(32), nullable=True)
    environment = db.Column(db.String(32), nullable=True)
    stats = db.Column(db.Text, nullable=True)  # JSON-encoded {stat: value}
    status = db.Column(db.String(32), default='alive', nullable=False)
    player_name = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    session = db.relationship('GameSession', back_populates='organisms')

    def to_dict(self):
        try:
            stats = json.loads(self.stats) if self.stats else {}
        except ValueError:
            stats = {}
        return {
            'id': str(self.id),
            'name': self.name,
            'kingdom': self.kingdom,
            'environment': self.environment,
            'stats': stats,
            'status': self.status,
            'player_name': self.player_name,
        }

    def to_organism(self) -> Organism:
        return Organism.from_dict(self.to_dict())

    def apply(self, organism: Organism) -> None:
        """Copy an organism's fields onto this row."""
        data = organism.to_dict()
        self.name = data['name']
        self.kingdom = data['kingdom']
        self.environment = data['environment']
        self.stats = json.dumps(data['stats'])
        self.status = data['status']
        self.player_name = data['player_name']
