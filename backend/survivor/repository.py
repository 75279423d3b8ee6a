"""Session storage boundary.

The phase controller only talks to :class:`SessionRepository`. Two stores
implement it: an in-memory one (tests, scripts) and a SQL one backed by
Flask-SQLAlchemy that also broadcasts changes over Socket.IO.
"""

import abc
import json
import logging
import time
import uuid
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from survivor import db, socketio
from survivor.errors import ReadError, RepositoryError, SessionNotFound, WriteError
from survivor.models import DEFAULT_SETTINGS, GameSession, OrganismRecord, Player, generate_game_code, random_game_code
from survivor.services.simulation.types import GameState, Organism

logger = logging.getLogger(__name__)

RosterListener = Callable[[List[Organism]], None]
PhaseListener = Callable[[GameState], None]
Unsubscribe = Callable[[], None]


def with_retries(operation: Callable, *args, max_attempts: int = 3, backoff: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep, label: str = None, **kwargs):
    """Call ``operation``, retrying store failures with exponential backoff.

    Only :class:`RepositoryError` is retried; the last one is re-raised once
    ``max_attempts`` is used up.
    """
    label = label or getattr(operation, '__name__', 'operation')
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation(*args, **kwargs)
        except RepositoryError as exc:
            if attempt >= max_attempts:
                logger.error(f"[retry-exhausted] op={label} attempts={attempt} error={exc.message}")
                raise
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(f"[retry] op={label} attempt={attempt}/{max_attempts} delay={delay}s error={exc.message}")
            sleep(delay)


class Listeners:
    """Per-session callback registry."""

    def __init__(self):
        self._callbacks: Dict[str, List[Callable]] = defaultdict(list)

    def add(self, code: str, callback: Callable) -> Unsubscribe:
        self._callbacks[code].append(callback)

        def unsubscribe():
            callbacks = self._callbacks.get(code, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def notify(self, code: str, payload: Any) -> None:
        for callback in list(self._callbacks.get(code, [])):
            try:
                callback(payload)
            except Exception:
                logger.exception(f"[listener-error] session={code} callback={callback!r}")

    def clear(self, code: str) -> None:
        self._callbacks.pop(code, None)


class SessionRepository(abc.ABC):

    def __init__(self, roster_listeners: Listeners = None, phase_listeners: Listeners = None):
        self._roster_listeners = roster_listeners or Listeners()
        self._phase_listeners = phase_listeners or Listeners()

    # -- sessions / players --
    @abc.abstractmethod
    def create_session(self, host_name: str, settings: Optional[dict] = None) -> str:
        """Create a session in ``waiting`` and return its unique code."""

    @abc.abstractmethod
    def get_session(self, code: str) -> Dict[str, Any]:
        """Session metadata: code, host name, settings, state, players."""

    @abc.abstractmethod
    def add_player(self, code: str, name: str) -> Dict[str, Any]:
        """Record a joined player."""

    @abc.abstractmethod
    def delete_session(self, code: str) -> None:
        """Remove the session and everything in it."""

    # -- roster --
    @abc.abstractmethod
    def get_roster(self, code: str) -> List[Organism]:
        """Every organism in submission order, malformed rows included."""

    @abc.abstractmethod
    def write_roster(self, code: str, organisms: List[Organism]) -> None:
        """Overwrite stored organisms that carry an id."""

    @abc.abstractmethod
    def add_organism(self, code: str, player_name: str, organism: Organism) -> str:
        """Append an organism and return its fresh id."""

    # -- phase --
    @abc.abstractmethod
    def get_phase(self, code: str) -> GameState:
        """Current game state of the session."""

    @abc.abstractmethod
    def write_phase(self, code: str, state: GameState) -> None:
        """Store a new game state."""

    def subscribe_roster(self, code: str, on_change: RosterListener) -> Unsubscribe:
        return self._roster_listeners.add(code, on_change)

    def subscribe_phase(self, code: str, on_change: PhaseListener) -> Unsubscribe:
        return self._phase_listeners.add(code, on_change)

    def _roster_changed(self, code: str) -> None:
        self._roster_listeners.notify(code, self.get_roster(code))

    def _phase_changed(self, code: str, state: GameState) -> None:
        self._phase_listeners.notify(code, state)

    def _session_ended(self, code: str) -> None:
        self._roster_listeners.clear(code)
        self._phase_listeners.clear(code)


class InMemorySessionRepository(SessionRepository):
    """Dict-backed store; one instance per process."""

    def __init__(self, code_length: int = 6, **kwargs):
        super().__init__(**kwargs)
        self.code_length = code_length
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def _session(self, code: str) -> Dict[str, Any]:
        session = self._sessions.get((code or '').upper())
        if session is None:
            raise SessionNotFound(f'Game {code} not found')
        return session

    def create_session(self, host_name, settings=None):
        code = random_game_code(self.code_length)
        while code in self._sessions:
            code = random_game_code(self.code_length)
        merged = dict(DEFAULT_SETTINGS)
        merged.update(settings or {})
        self._sessions[code] = {
            'game_code': code,
            'host_name': host_name,
            'settings': merged,
            'state': GameState.WAITING,
            'players': [],
            'organisms': {},
        }
        return code

    def get_session(self, code):
        session = self._session(code)
        return {
            'game_code': session['game_code'],
            'host_name': session['host_name'],
            'settings': dict(session['settings']),
            'state': session['state'].value,
            'players': list(session['players']),
        }

    def add_player(self, code, name):
        session = self._session(code)
        player = {'id': uuid.uuid4().hex, 'name': name}
        session['players'].append(player)
        return dict(player)

    def delete_session(self, code):
        self._session(code)
        self._sessions.pop(code.upper())
        self._session_ended(code.upper())

    def get_roster(self, code):
        return list(self._session(code)['organisms'].values())

    def write_roster(self, code, organisms):
        stored = self._session(code)['organisms']
        for organism in organisms:
            if organism.id and organism.id in stored:
                stored[organism.id] = organism
        self._roster_changed(code.upper())

    def add_organism(self, code, player_name, organism):
        stored = self._session(code)['organisms']
        ident = uuid.uuid4().hex
        stored[ident] = Organism(
            name=organism.name,
            kingdom=organism.kingdom,
            environment=organism.environment,
            stats=dict(organism.stats),
            status=organism.status,
            player_name=player_name,
            id=ident,
        )
        self._roster_changed(code.upper())
        return ident

    def get_phase(self, code):
        return self._session(code)['state']

    def write_phase(self, code, state):
        self._session(code)['state'] = GameState(state)
        self._phase_changed(code.upper(), GameState(state))


# Shared across request-scoped SQL repositories
_sql_roster_listeners = Listeners()
_sql_phase_listeners = Listeners()


class SqlSessionRepository(SessionRepository):
    """Flask-SQLAlchemy store; requires an application context."""

    def __init__(self, code_length: int = 6, emit: bool = True, **kwargs):
        kwargs.setdefault('roster_listeners', _sql_roster_listeners)
        kwargs.setdefault('phase_listeners', _sql_phase_listeners)
        super().__init__(**kwargs)
        self.code_length = code_length
        self.emit = emit

    def _session(self, code: str):
        try:
            session = GameSession.query.filter_by(code=(code or '').upper()).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise ReadError(f'Failed to load game {code}: {exc}') from exc
        if session is None:
            raise SessionNotFound(f'Game {code} not found')
        return session

    def _commit(self, what: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise WriteError(f'Failed to {what}: {exc}') from exc

    def _broadcast(self, event: str, payload: dict) -> None:
        if not self.emit:
            return
        socketio.emit(event, payload, to=f"game:{payload['game_code']}", namespace='/ws')

    def create_session(self, host_name, settings=None):
        try:
            code = generate_game_code(self.code_length)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise ReadError(f'Failed to generate game code: {exc}') from exc
        session = GameSession(
            code=code,
            host_name=host_name,
            settings=json.dumps(settings or {}),
            state=GameState.WAITING.value,
        )
        db.session.add(session)
        self._commit('create game')
        return code

    def get_session(self, code):
        return self._session(code).to_dict()

    def add_player(self, code, name):
        session = self._session(code)
        player = Player(name=name, session_id=session.id)
        db.session.add(player)
        self._commit('join game')
        self._broadcast('state_update', {'game_code': session.code, 'state': session.state})
        return player.to_dict()

    def delete_session(self, code):
        session = self._session(code)
        game_code = session.code
        db.session.delete(session)
        self._commit('end game')
        self._broadcast('session_ended', {'game_code': game_code})
        self._session_ended(game_code)

    def get_roster(self, code):
        return [record.to_organism() for record in self._session(code).organisms]

    def _roster_changed(self, code):
        roster = self.get_roster(code)
        self._roster_listeners.notify(code, roster)
        self._broadcast('roster_update', {'game_code': code, 'organisms': [o.to_dict() for o in roster]})

    def write_roster(self, code, organisms):
        session = self._session(code)
        records = {str(r.id): r for r in session.organisms}
        for organism in organisms:
            record = records.get(organism.id) if organism.id else None
            if record is not None:
                record.apply(organism)
        self._commit('update organisms')
        self._roster_changed(session.code)

    def add_organism(self, code, player_name, organism):
        session = self._session(code)
        record = OrganismRecord(session_id=session.id)
        record.apply(organism)
        record.player_name = player_name
        db.session.add(record)
        self._commit('submit organism')
        self._roster_changed(session.code)
        return str(record.id)

    def get_phase(self, code):
        return GameState(self._session(code).state)

    def write_phase(self, code, state):
        state = GameState(state)
        session = self._session(code)
        session.state = state.value
        db.session.add(session)
        self._commit('update game state')
        self._phase_changed(session.code, state)
        self._broadcast('state_update', {'game_code': session.code, 'state': state.value})
