import time
from typing import Dict, Set, Tuple

from survivor.errors import GameError
from survivor.repository import SqlSessionRepository
from .phases import controller_for
from .types import GameState


_scheduled_phase_keys: Set[Tuple[str, str]] = set()
# Bumped on reset/end so timers from an earlier round know they are stale
_timer_generation: Dict[str, int] = {}


def cancel_phase_timers(code: str) -> None:
    """Forget pending timers of a session; any still sleeping will abort."""
    code = code.upper()
    _timer_generation[code] = _timer_generation.get(code, 0) + 1
    for key in [k for k in _scheduled_phase_keys if k[0] == code]:
        _scheduled_phase_keys.discard(key)


def schedule_phase_timer(app, code: str) -> None:
    """Schedule auto-advance for the current phase of the given session.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - No-ops unless the session was created with autoAdvance
    - Ensures a single timer per (session, phase)
    - Advances through the pipeline: environment (run, move to city) -> city (run, results)
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    with app.app_context():
        repository = SqlSessionRepository()
        session = repository.get_session(code)
        if not session['settings'].get('autoAdvance'):
            return

        state = session['state']
        if state == GameState.ENVIRONMENT.value:
            duration = int(app.config.get('ENVIRONMENT_PHASE_DURATION_SEC', 30))
        elif state == GameState.CITY.value:
            duration = int(app.config.get('CITY_PHASE_DURATION_SEC', 30))
        else:
            return

        key = (session['game_code'], state)
        if key in _scheduled_phase_keys:
            app.logger.info(f"[timer-skip] session={key[0]} state={state} already scheduled")
            return
        _scheduled_phase_keys.add(key)
        generation = _timer_generation.get(key[0], 0)
        app.logger.info(f"[timer-set] session={key[0]} state={state} duration={duration}s")

    if app.config.get('TESTING'):
        run_phase_timer(app, state, key[0], duration, generation)
    else:
        from survivor import socketio
        socketio.start_background_task(run_phase_timer, app, state, key[0], duration, generation)


def run_phase_timer(app, expected_state: str, game_code: str, delay: int, generation: int) -> None:
    """Timer body: wait, then advance the session if nothing moved it meanwhile."""
    if delay:
        time.sleep(delay)
    with app.app_context():
        if _timer_generation.get(game_code, 0) != generation:
            app.logger.info(f"[timer-abort] session={game_code} state={expected_state} stale timer")
            return
        _scheduled_phase_keys.discard((game_code, expected_state))
        try:
            controller = controller_for(app, game_code)
            current = controller.state().value
            app.logger.info(f"[timer-fire] session={game_code} expected_state={expected_state} actual_state={current}")
            if current != expected_state:
                app.logger.info(f"[timer-abort] session={game_code} state mismatch")
                return

            if expected_state == GameState.ENVIRONMENT.value:
                controller.run_environment_phase()
                controller.move_to_city_phase()
                schedule_phase_timer(app, game_code)
                return

            if expected_state == GameState.CITY.value:
                controller.run_city_phase()
        except GameError as exc:
            app.logger.error(f"[timer-error] session={game_code} state={expected_state} "
                             f"error={exc.__class__.__name__}: {exc.message}")
