import time
from typing import Callable, Optional

from codetype import socketio
from .practice import Completion, PracticeController


def schedule_countdown(
    app,
    controller: PracticeController,
    token: int,
    on_tick: Optional[Callable[[dict], None]] = None,
    on_end: Optional[Callable[[Completion], None]] = None,
) -> None:
    """Run the one-second countdown for a timed window in the background.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - One worker per token; starting another mode bumps the controller token
      and the old worker exits on its next step
    - Each step goes through controller.tick(), which holds the controller lock
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    try:
        step = float(app.config.get('COUNTDOWN_TICK_SEC', 1))
    except (TypeError, ValueError):
        step = 1.0
    try:
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
    except (TypeError, ValueError):
        hb = 0

    app.logger.info(
        f"[countdown-set] token={token} duration={controller.timed.duration}s step={step}s"
    )

    def _worker(expected_token: int):
        steps = 0
        while True:
            time.sleep(step)
            with app.app_context():
                if not controller.is_current(expected_token):
                    app.logger.info(f"[countdown-abort] token={expected_token} superseded")
                    return
                try:
                    completion = controller.tick(expected_token)
                except Exception:
                    app.logger.exception(f"[countdown-error] token={expected_token}")
                    return
                steps += 1
                if hb and hb > 0 and steps % hb == 0:
                    app.logger.info(
                        f"[countdown-heartbeat] token={expected_token} remaining={controller.timed.remaining}s"
                    )
                if completion is not None:
                    app.logger.info(
                        f"[countdown-end] token={expected_token} wpm={completion.result.wpm} "
                        f"accuracy={completion.result.accuracy} chars={completion.result.char_count}"
                    )
                    if on_end:
                        on_end(completion)
                    return
                if on_tick:
                    on_tick(controller.timed.to_dict())

    socketio.start_background_task(_worker, token)
