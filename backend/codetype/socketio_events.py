from flask_socketio import emit
from flask import current_app, request
from codetype import socketio
from codetype.services.typing.leaderboard import SubmissionError, add_score
from codetype.services.typing.practice import Completion, PracticeController
from codetype.services.typing.scheduler import schedule_countdown
from codetype.services.typing.store import MemoryPreferenceStore, SqlPreferenceStore, set_sound_enabled
from typing import Dict
import uuid

WS_NAMESPACE = '/ws'

_controllers: Dict[str, PracticeController] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _new_controller(store) -> PracticeController:
    cfg = current_app.config
    return PracticeController(
        store,
        min_submit_accuracy=int(cfg.get('MIN_SUBMIT_ACCURACY', 80)),
        history_limit=int(cfg.get('HISTORY_LIMIT', 20)),
        custom_snippet_limit=int(cfg.get('CUSTOM_SNIPPET_LIMIT', 10)),
    )


def _controller() -> PracticeController:
    """Controller for this socket; anonymous in-memory until `join` names a client."""
    sid = _get_sid()
    ctrl = _controllers.get(sid)
    if ctrl is None:
        ctrl = _new_controller(MemoryPreferenceStore())
        _controllers[sid] = ctrl
    return ctrl


def _emit_state(ctrl: PracticeController) -> None:
    emit('session_state', ctrl.snapshot())


def _announce(completion: Completion, to=None) -> None:
    """Emit a finished result and, if any, the first achievement unlocked by it."""
    payload = completion.to_dict()
    if to is None:
        emit('session_complete', payload)
    else:
        socketio.emit('session_complete', payload, to=to, namespace=WS_NAMESPACE)
    toast = completion.progress.toast if completion.progress else None
    if toast is not None:
        if to is None:
            emit('achievement_unlocked', toast.to_dict())
        else:
            socketio.emit('achievement_unlocked', toast.to_dict(), to=to, namespace=WS_NAMESPACE)


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    ctrl = _controllers.pop(_get_sid(), None)
    if ctrl is not None:
        ctrl.cancel()


def handle_join(data=None):
    client_id = (data or {}).get('client_id') or uuid.uuid4().hex
    if not isinstance(client_id, str) or len(client_id) > 64:
        emit('error', {'message': 'client_id must be a string of at most 64 characters'})
        return
    sid = _get_sid()
    previous = _controllers.pop(sid, None)
    if previous is not None:
        previous.cancel()
    ctrl = _new_controller(SqlPreferenceStore(client_id))
    _controllers[sid] = ctrl
    emit('joined', {'client_id': client_id, 'profile': ctrl.tracker.snapshot(ctrl.today())})


def handle_configure(data=None):
    data = data or {}
    ctrl = _controller()
    try:
        ctrl.set_filters(data.get('language'), data.get('difficulty'))
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    _emit_state(ctrl)


def handle_start_practice(data=None):
    ctrl = _controller()
    ctrl.start_practice()
    _emit_state(ctrl)


def handle_start_daily(data=None):
    ctrl = _controller()
    ctrl.start_daily()
    _emit_state(ctrl)


def handle_start_custom(data=None):
    data = data or {}
    ctrl = _controller()
    try:
        ctrl.start_custom(data.get('code') or '', data.get('name'), save=bool(data.get('save')))
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    _emit_state(ctrl)


def handle_start_timed(data=None):
    data = data or {}
    ctrl = _controller()
    try:
        token = ctrl.start_timed(int(data.get('seconds')))
    except (TypeError, ValueError) as exc:
        emit('error', {'message': str(exc)})
        return
    _emit_state(ctrl)

    sid = _get_sid()

    def _on_tick(timed_state):
        socketio.emit('timer', timed_state, to=sid, namespace=WS_NAMESPACE)

    def _on_end(completion):
        socketio.emit('timer', ctrl.timed.to_dict(), to=sid, namespace=WS_NAMESPACE)
        _announce(completion, to=sid)

    schedule_countdown(current_app._get_current_object(), ctrl, token, on_tick=_on_tick, on_end=_on_end)


def handle_key(data=None):
    key = (data or {}).get('key')
    if not isinstance(key, str) or not key:
        emit('error', {'message': 'key is required'})
        return
    ctrl = _controller()
    completion = ctrl.handle_key(key)
    _emit_state(ctrl)
    if completion is not None:
        _announce(completion)


def handle_submit_score(data=None):
    name = (data or {}).get('name')
    ctrl = _controller()
    try:
        cleaned = ctrl.submission(name if isinstance(name, str) else '')
    except SubmissionError as exc:
        emit('submit_failed', {'error': str(exc)})
        return
    try:
        entry = add_score(cleaned)
    except Exception as exc:
        current_app.logger.error(f"[submit-failed] name={cleaned['name']} wpm={cleaned['wpm']} error={exc}")
        emit('submit_failed', {'error': 'Failed to add score'})
        return
    ctrl.mark_submitted()
    emit('score_submitted', entry.to_dict())


def handle_set_sound(data=None):
    ctrl = _controller()
    enabled = set_sound_enabled(ctrl.store, bool((data or {}).get('enabled')))
    emit('sound', {'enabled': enabled})


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join': handle_join,
        'configure': handle_configure,
        'start_practice': handle_start_practice,
        'start_daily': handle_start_daily,
        'start_custom': handle_start_custom,
        'start_timed': handle_start_timed,
        'key': handle_key,
        'submit_score': handle_submit_score,
        'set_sound': handle_set_sound,
        'ping': handle_ping,
    }
    namespaces = [WS_NAMESPACE, '/'] if testing else [WS_NAMESPACE]
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
