"""Phase controller: the host-side state machine of one session.

waiting -> environment -> city -> results, with reset back to waiting
from anywhere and end_game deleting the session. Exactly one controller
drives a session at a time; nothing here locks.
"""

import logging
import time
from typing import Callable, List, Optional

from survivor.errors import InvalidPhaseTransition, NoOrganisms
from survivor.repository import SessionRepository, SqlSessionRepository, with_retries
from .classifier import CITY_THRESHOLDS, ENVIRONMENT_THRESHOLDS, classify_organism
from .results import winners as surviving
from .scoring import city_compatibility, environment_compatibility
from .types import GameState, Organism, OrganismStatus

logger = logging.getLogger(__name__)

# Which states each host action may be issued from
ALLOWED_FROM = {
    'start': {GameState.WAITING},
    'run_environment_phase': {GameState.ENVIRONMENT},
    'move_to_city_phase': {GameState.WAITING, GameState.ENVIRONMENT},
    'run_city_phase': {GameState.CITY},
}


class PhaseController:

    def __init__(self, repository: SessionRepository, code: str, max_attempts: int = 3,
                 backoff: float = 1.0, bonus_table=None, sleep: Callable[[float], None] = time.sleep):
        self.repository = repository
        self.code = code.upper()
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.bonus_table = bonus_table
        self.sleep = sleep
        self.winners: List[Organism] = []

    def _call(self, operation, *args):
        return with_retries(operation, self.code, *args, max_attempts=self.max_attempts,
                            backoff=self.backoff, sleep=self.sleep, label=operation.__name__)

    def state(self) -> GameState:
        return self._call(self.repository.get_phase)

    def roster(self) -> List[Organism]:
        return self._call(self.repository.get_roster)

    def _require(self, action: str) -> GameState:
        current = self.state()
        if current not in ALLOWED_FROM[action]:
            raise InvalidPhaseTransition(f'Cannot {action.replace("_", " ")} while the game is in {current.value}')
        return current

    def _scorable(self, roster: List[Organism]) -> List[Organism]:
        usable = [o for o in roster if o.is_well_formed()]
        skipped = len(roster) - len(usable)
        if skipped:
            logger.warning(f"[roster-skip] session={self.code} malformed={skipped}")
        return usable

    def _set_state(self, state: GameState) -> None:
        self._call(self.repository.write_phase, state)

    def start(self) -> GameState:
        if self.state() == GameState.ENVIRONMENT:
            # already started
            return GameState.ENVIRONMENT
        self._require('start')
        if not self._scorable(self.roster()):
            raise NoOrganisms()
        self._set_state(GameState.ENVIRONMENT)
        logger.info(f"[start] session={self.code} -> environment")
        return GameState.ENVIRONMENT

    def _rescore(self, score: Callable[[Organism], float], thresholds) -> List[Organism]:
        updated = []
        for organism in self._scorable(self.roster()):
            if organism.status == OrganismStatus.EXTINCT:
                updated.append(organism)
                continue
            value = score(organism)
            status = classify_organism(organism.status, value, thresholds)
            logger.debug(f"[score] session={self.code} organism={organism.id} score={value:.2f} status={status.value}")
            updated.append(organism.with_status(status))
        self._call(self.repository.write_roster, updated)
        return updated

    def run_environment_phase(self) -> List[Organism]:
        """Score every living organism against its own environment.

        The game stays in ``environment``; the host moves on separately.
        """
        self._require('run_environment_phase')
        updated = self._rescore(
            lambda o: environment_compatibility(o, o.environment, self.bonus_table),
            ENVIRONMENT_THRESHOLDS,
        )
        logger.info(f"[environment] session={self.code} scored={len(updated)} "
                    f"extinct={sum(1 for o in updated if o.status == OrganismStatus.EXTINCT)}")
        return updated

    def move_to_city_phase(self) -> GameState:
        previous = self._require('move_to_city_phase')
        self._set_state(GameState.CITY)
        logger.info(f"[city] session={self.code} {previous.value} -> city")
        return GameState.CITY

    def run_city_phase(self) -> List[Organism]:
        self._require('run_city_phase')
        updated = self._rescore(city_compatibility, CITY_THRESHOLDS)
        self.winners = surviving(updated)
        self._set_state(GameState.RESULTS)
        logger.info(f"[results] session={self.code} winners={len(self.winners)}/{len(updated)}")
        return self.winners

    def reset_game(self) -> GameState:
        roster = self.roster()
        self._call(self.repository.write_roster, [o.with_status(OrganismStatus.ALIVE) for o in roster])
        self._set_state(GameState.WAITING)
        self.winners = []
        logger.info(f"[reset] session={self.code} organisms={len(roster)} -> waiting")
        return GameState.WAITING

    def end_game(self) -> None:
        self._call(self.repository.delete_session)
        self.winners = []
        logger.info(f"[end] session={self.code} deleted")

    def current_winners(self) -> Optional[List[Organism]]:
        """Survivors once the game reached results, else ``None``."""
        if self.state() != GameState.RESULTS:
            return None
        return surviving(self._scorable(self.roster()))


def controller_for(app, code: str, repository: SessionRepository = None) -> PhaseController:
    """Build a controller wired to the app's retry and scoring config."""
    cfg = app.config
    return PhaseController(
        repository or SqlSessionRepository(code_length=int(cfg.get('GAME_CODE_LENGTH', 6))),
        code,
        max_attempts=int(cfg.get('REPOSITORY_MAX_ATTEMPTS', 3)),
        backoff=float(cfg.get('REPOSITORY_BACKOFF_SEC', 1.0)),
        bonus_table=cfg.get('KINGDOM_BONUS_TABLE', 'targeted'),
    )
