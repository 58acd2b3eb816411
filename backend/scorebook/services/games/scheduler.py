import time
from typing import Set, Tuple

from scorebook import socketio
from scorebook.models import Game
from . import store


_scheduled_clock_keys: Set[Tuple[int, int]] = set()


def schedule_period_end(app, game_id: int) -> None:
    """Fire the period end for a running game clock when it reaches zero.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Ensures a single timer per (game_id, quarter)
    - Wakes early timers up again if the clock was paused and resumed meanwhile
    - Persists the paused game and emits ``quarter_end`` to the game room
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    with app.app_context():
        game = Game.query.filter_by(id=game_id).first()
        if not game or game.status != 'active':
            return
        with store.locked_session(game) as session:
            delay = session.clock.seconds_until_expiry()
            quarter = session.current_quarter
        if delay is None:
            return

        key = (game.id, quarter)
        if key in _scheduled_clock_keys:
            app.logger.info(f"[timer-skip] game={game.id} quarter={quarter} already scheduled")
            return
        _scheduled_clock_keys.add(key)
        app.logger.info(f"[timer-set] game={game.id} quarter={quarter} expires_in={delay:.1f}s")

    def _worker(gid: int, expected_quarter: int, wait: float):
        hb = int(app.config.get('CLOCK_HEARTBEAT_SEC', 0) or 0)
        # small margin so the clock has consumed its last whole second on wake-up
        wait += 0.05
        if hb > 0:
            slept = 0.0
            while slept < wait:
                step = min(hb, wait - slept)
                time.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] game={gid} quarter={expected_quarter} remaining={max(0.0, wait - slept):.1f}s")
        else:
            time.sleep(wait)

        reschedule = False
        with app.app_context():
            _scheduled_clock_keys.discard((gid, expected_quarter))
            g = Game.query.filter_by(id=gid).first()
            if not g:
                return
            with store.locked_session(g) as session:
                if session.current_quarter != expected_quarter:
                    app.logger.info(f"[timer-abort] game={gid} quarter moved to {session.current_quarter}")
                    return
                ended = session.tick()
                if not ended:
                    reschedule = session.clock.is_running
                    app.logger.info(f"[timer-early] game={gid} remaining={session.clock.seconds_remaining}s")
                else:
                    store.persist(g, session)
                    app.logger.info(f"[timer-fire] game={gid} quarter={expected_quarter} period ended")
                    snapshot = session.snapshot()
            if ended:
                room = f"game:{gid}"
                socketio.emit('quarter_end', {'game_id': gid, 'quarter': expected_quarter}, to=room, namespace='/ws')
                socketio.emit('state_update', {'game_id': gid, 'state': snapshot}, to=room, namespace='/ws')
        if reschedule:
            schedule_period_end(app, gid)

    if app.config.get('TESTING'):
        _worker(game_id, quarter, delay)
    else:
        socketio.start_background_task(_worker, game_id, quarter, delay)
