import random
from datetime import date, datetime

import pytest

from codetype.services.typing.leaderboard import SubmissionError, can_submit
from codetype.services.typing.practice import PracticeController
from codetype.services.typing.session import SessionResult
from codetype.services.typing.snippets import daily_snippet
from codetype.services.typing.store import MemoryPreferenceStore, saved_custom_snippets, saved_name

TODAY = date(2026, 10, 19)


def make_controller(clock):
    return PracticeController(
        MemoryPreferenceStore(),
        clock=clock,
        today=lambda: TODAY,
        now=lambda: datetime(2026, 10, 19, 9, 30),
        rng=random.Random(3),
    )


def type_code(ctrl, clock, code, wrong_at=None):
    completion = None
    for i, ch in enumerate(code):
        if i == 1:
            clock.advance(30000)
        key = '#' if i == wrong_at else ch
        if ch == '\n':
            key = 'Enter'
        out = ctrl.handle_key(key)
        if out is not None:
            completion = out
    return completion


def test_practice_completion_records_progress(clock):
    ctrl = make_controller(clock)
    snippet = ctrl.start_practice()
    completion = type_code(ctrl, clock, snippet.code)
    assert completion is not None
    assert completion.result.mode == 'practice'
    assert completion.result.accuracy == 100
    assert completion.progress.stats.total_sessions == 1
    assert completion.progress.toast.id == 'first-steps'
    assert ctrl.tracker.history()[-1]['mode'] == 'practice'


def test_daily_uses_date_seeded_snippet_and_daily_best(clock):
    ctrl = make_controller(clock)
    snippet = ctrl.start_daily()
    assert snippet == daily_snippet(TODAY)
    completion = type_code(ctrl, clock, snippet.code)
    assert completion.result.mode == 'daily'
    assert completion.progress.new_daily_best
    assert ctrl.tracker.daily_best(TODAY)['snippet_id'] == snippet.id


def test_custom_snippet_saved_and_scored(clock):
    ctrl = make_controller(clock)
    ctrl.start_custom('hello world', 'greeting', save=True)
    assert saved_custom_snippets(ctrl.store) == [{'code': 'hello world', 'name': 'greeting'}]
    completion = type_code(ctrl, clock, 'hello world')
    # Custom runs are scored and ranked as practice
    assert completion.result.mode == 'practice'
    assert completion.snippet_id.startswith('custom-')
    assert ctrl.snapshot()['mode'] == 'custom'
    assert ctrl.tracker.history()[-1]['mode'] == 'practice'


def test_timed_window_through_ticks(clock):
    ctrl = make_controller(clock)
    ctrl.set_filters('go', 'easy')
    token = ctrl.start_timed(30)
    first = ctrl.session.snippet.code
    type_code(ctrl, clock, first)
    assert ctrl.timed.snippets_completed == 1
    # Half-typed second snippet when time runs out
    ctrl.handle_key(ctrl.session.snippet.code[0])
    completion = None
    for _ in range(30):
        out = ctrl.tick(token)
        if out is not None:
            completion = out
    assert completion.result.mode == '30s'
    assert completion.result.char_count == len(first)
    assert completion.result.language == 'go'
    assert completion.progress.stats.total_sessions == 1
    # Timer expiry leaves no way to keep typing into the window
    assert ctrl.handle_key('x') is None
    assert ctrl.timed.total_chars == len(first)


def test_mode_switch_cancels_countdown(clock):
    ctrl = make_controller(clock)
    token = ctrl.start_timed(60)
    assert ctrl.is_current(token)
    ctrl.start_practice()
    assert not ctrl.is_current(token)
    assert ctrl.tick(token) is None
    assert ctrl.timed.total_chars == 0


def test_restarting_timed_invalidates_previous_token(clock):
    ctrl = make_controller(clock)
    old = ctrl.start_timed(30)
    new = ctrl.start_timed(120)
    assert old != new
    assert ctrl.tick(old) is None
    assert ctrl.timed.remaining == 120
    ctrl.tick(new)
    assert ctrl.timed.remaining == 119


def test_empty_timed_window_records_nothing(clock):
    ctrl = make_controller(clock)
    token = ctrl.start_timed(30)
    completion = None
    for _ in range(30):
        completion = ctrl.tick(token) or completion
    assert completion.result.wpm == 0
    assert completion.progress is None
    assert not completion.submittable
    assert ctrl.tracker.stats().total_sessions == 0


def test_submission_gating(clock):
    ctrl = make_controller(clock)
    ctrl.start_custom('abcdefghij')
    # Two wrong characters out of ten: 80%
    completion = None
    for i, ch in enumerate('abcdefghij'):
        if i == 1:
            clock.advance(2000)
        completion = ctrl.handle_key('#' if i in (3, 7) else ch) or completion
    assert completion.result.accuracy == 80
    assert completion.submittable
    cleaned = ctrl.submission('  Ada  ')
    assert cleaned['name'] == 'Ada'
    assert saved_name(ctrl.store) == 'Ada'
    ctrl.mark_submitted()
    with pytest.raises(SubmissionError):
        ctrl.submission('Ada')


def test_low_accuracy_result_is_not_offered(clock):
    ctrl = make_controller(clock)
    ctrl.start_custom('abcdefghijklmnopqrstuvwxyz' * 4)
    code = 'abcdefghijklmnopqrstuvwxyz' * 4
    completion = None
    for i, ch in enumerate(code):
        if i == 1:
            clock.advance(30000)
        # 21 wrong out of 104 -> 79.8 rounds to 80; 22 wrong -> 78.8 rounds to 79
        completion = ctrl.handle_key('#' if i < 22 else ch) or completion
    assert completion.result.accuracy == 79
    assert not completion.submittable
    with pytest.raises(SubmissionError):
        ctrl.submission('Ada')


def test_can_submit_boundaries():
    assert not can_submit(SessionResult(wpm=50, accuracy=79, char_count=10))
    assert can_submit(SessionResult(wpm=50, accuracy=80, char_count=10))
    assert not can_submit(SessionResult(wpm=0, accuracy=100, char_count=10))
    assert not can_submit(None)


def test_heatmap_is_cumulative_across_snippets(clock):
    ctrl = make_controller(clock)
    ctrl.start_custom('aa')
    type_code(ctrl, clock, 'aa')
    ctrl.start_custom('ab')
    ctrl.handle_key('a')
    assert ctrl.heatmap.keys['a'].correct == 3


def test_unknown_filter_rejected(clock):
    ctrl = make_controller(clock)
    with pytest.raises(ValueError):
        ctrl.set_filters('cobol')


def test_empty_filter_combination_still_starts_every_mode(clock):
    ctrl = make_controller(clock)
    ctrl.set_filters('c', 'hard')
    assert ctrl.start_practice() is not None
    token = ctrl.start_timed(30)
    assert ctrl.is_current(token)
    assert ctrl.session.snippet is not None


def test_filter_change_mid_window_keeps_typing(clock):
    ctrl = make_controller(clock)
    ctrl.start_timed(30)
    ctrl.set_filters('go', 'hard')
    first = ctrl.session.snippet.code
    type_code(ctrl, clock, first)
    assert ctrl.timed.snippets_completed == 1
    assert not ctrl.session.is_complete
    ctrl.handle_key(ctrl.session.snippet.code[0])
    assert len(ctrl.session.typed) == 1


def test_bad_duration_leaves_current_session_alone(clock):
    ctrl = make_controller(clock)
    ctrl.start_practice()
    with pytest.raises(ValueError):
        ctrl.start_timed(45)
    assert ctrl.mode == 'practice'
    assert ctrl.session.snippet is not None
