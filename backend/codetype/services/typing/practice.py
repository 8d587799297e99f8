"""Per-client practice controller.

Keystrokes and countdown ticks arrive from different producers (the socket
handler and the countdown worker). Both go through this controller, and each
public method holds the same lock for its whole transition, so a tick can
never land halfway through a keystroke.
"""

import logging
import random
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional

from .leaderboard import SubmissionError, can_submit, submission_payload, validate_submission, MIN_SUBMIT_ACCURACY
from .session import KeyHeatmap, SessionResult, TypingSession
from .snippets import (
    DIFFICULTY_IDS,
    LANGUAGE_IDS,
    Snippet,
    create_custom_snippet,
    daily_snippet,
    random_snippet,
)
from .store import PreferenceStore, save_custom_snippet, save_name, CUSTOM_SNIPPET_LIMIT
from .timed import TIMED_DURATIONS, TimedChallenge
from .tracker import ProgressTracker, ProgressUpdate, HISTORY_LIMIT

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Completion:
    result: SessionResult
    progress: Optional[ProgressUpdate]
    submittable: bool
    snippet_id: Optional[str] = None
    submitted: bool = False

    def to_dict(self):
        return {
            'result': self.result.to_dict(),
            'progress': self.progress.to_dict() if self.progress else None,
            'submittable': self.submittable and not self.submitted,
            'snippet_id': self.snippet_id,
        }


class PracticeController:
    def __init__(
        self,
        store: PreferenceStore,
        clock: Optional[Callable[[], float]] = None,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
        min_submit_accuracy: int = MIN_SUBMIT_ACCURACY,
        history_limit: int = HISTORY_LIMIT,
        custom_snippet_limit: int = CUSTOM_SNIPPET_LIMIT,
    ):
        self._lock = threading.RLock()
        self.store = store
        self.tracker = ProgressTracker(store, history_limit=history_limit)
        self.heatmap = KeyHeatmap()
        self.session = TypingSession(clock=clock, heatmap=self.heatmap)
        self.today = today or utc_today
        self.now = now or utc_now
        self.rng = rng or random.Random()
        self.min_submit_accuracy = min_submit_accuracy
        self.custom_snippet_limit = custom_snippet_limit
        self.language: Optional[str] = None
        self.difficulty: Optional[str] = None
        self.mode: Optional[str] = None
        self.timed = TimedChallenge(self.session, self._pick)
        self.countdown_token = 0
        self.last_completion: Optional[Completion] = None

    def _pick(self) -> Snippet:
        return random_snippet(self.language, self.difficulty, rng=self.rng)

    def set_filters(self, language: Optional[str] = None, difficulty: Optional[str] = None) -> None:
        if language and language not in LANGUAGE_IDS:
            raise ValueError(f'Unknown language {language}')
        if difficulty and difficulty not in DIFFICULTY_IDS:
            raise ValueError(f'Unknown difficulty {difficulty}')
        with self._lock:
            self.language = language or None
            self.difficulty = difficulty or None
            self.timed.language = self.language

    def _stop_countdown(self) -> None:
        self.timed.cancel()
        self.countdown_token += 1

    def _begin(self, snippet: Snippet, mode: str, result_mode: Optional[str] = None) -> None:
        self._stop_countdown()
        self.mode = mode
        self.last_completion = None
        self.session.start(snippet, mode=result_mode or mode)
        logger.debug("[begin] mode=%s snippet=%s", mode, snippet.id)

    def start_practice(self) -> Snippet:
        with self._lock:
            snippet = self._pick()
            self._begin(snippet, 'practice')
            return snippet

    def start_daily(self) -> Snippet:
        with self._lock:
            snippet = daily_snippet(self.today())
            self._begin(snippet, 'daily')
            return snippet

    def start_custom(self, code: str, name: Optional[str] = None, save: bool = False) -> Snippet:
        with self._lock:
            snippet = create_custom_snippet(code, name)
            if save:
                save_custom_snippet(self.store, snippet.code, snippet.name, limit=self.custom_snippet_limit)
            # Custom runs score as practice; only the controller mode says custom
            self._begin(snippet, 'custom', result_mode='practice')
            return snippet

    def start_timed(self, seconds: int) -> int:
        """Start a timed window and return the token the countdown must present."""
        if seconds not in TIMED_DURATIONS:
            raise ValueError(f'Unsupported duration {seconds}; expected one of {TIMED_DURATIONS}')
        with self._lock:
            self._stop_countdown()
            self.timed.start(seconds)
            self.mode = 'timed'
            self.last_completion = None
            return self.countdown_token

    def cancel(self) -> None:
        with self._lock:
            self._stop_countdown()

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self.countdown_token and self.timed.running

    def handle_key(self, key: str) -> Optional[Completion]:
        with self._lock:
            if self.mode is None:
                return None
            if self.mode == 'timed':
                self.timed.on_key(key)
                return None
            result = self.session.on_key(key)
            if result is None:
                return None
            snippet = self.session.snippet
            return self._finish(result, snippet.id, daily=self.mode == 'daily')

    def tick(self, token: int) -> Optional[Completion]:
        """Advance the countdown by one step; stale tokens are ignored."""
        with self._lock:
            if token != self.countdown_token or not self.timed.running:
                return None
            result = self.timed.tick()
            if result is None:
                return None
            if result.char_count == 0:
                # Nothing finished inside the window; no progress to record
                completion = Completion(result=result, progress=None, submittable=False)
                self.last_completion = completion
                return completion
            return self._finish(result, None, timed=True)

    def _finish(self, result: SessionResult, snippet_id: Optional[str], daily: bool = False, timed: bool = False) -> Completion:
        progress = self.tracker.record(
            result,
            today=self.today(),
            when=self.now(),
            snippet_id=snippet_id,
            daily=daily,
            timed=timed,
        )
        completion = Completion(
            result=result,
            progress=progress,
            submittable=can_submit(result, self.min_submit_accuracy),
            snippet_id=snippet_id,
        )
        self.last_completion = completion
        return completion

    def submission(self, name: str) -> dict:
        """Validated leaderboard payload for the last result."""
        with self._lock:
            completion = self.last_completion
            if completion is None or not completion.submittable:
                raise SubmissionError(f'Need at least {self.min_submit_accuracy}% accuracy to submit')
            if completion.submitted:
                raise SubmissionError('Score already submitted')
            cleaned = validate_submission(submission_payload(completion.result, name), self.min_submit_accuracy)
            save_name(self.store, cleaned['name'])
            return cleaned

    def mark_submitted(self) -> None:
        with self._lock:
            if self.last_completion is not None:
                self.last_completion.submitted = True

    def snapshot(self) -> dict:
        with self._lock:
            state = self.session.to_dict()
            state.update({
                'mode': self.mode,
                'language': self.language,
                'difficulty': self.difficulty,
                'timed': self.timed.to_dict() if self.mode == 'timed' else None,
                'heatmap': self.heatmap.to_dict(),
                'last_completion': self.last_completion.to_dict() if self.last_completion else None,
            })
            return state
