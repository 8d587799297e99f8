import logging
from enum import Enum
from typing import Callable, Optional

from .session import SessionResult, TypingSession, compute_accuracy, round_half_up, CHARS_PER_WORD
from .snippets import Snippet

logger = logging.getLogger(__name__)

TIMED_DURATIONS = (30, 60, 120)


class TimedState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    ENDED = 'ended'


def timed_mode(duration: int) -> str:
    return f"{duration}s"


class TimedChallenge:
    """Chains snippets through one TypingSession for a fixed countdown.

    Only fully completed snippets count; whatever is in the buffer when the
    countdown runs out is dropped. The window yields a single aggregate
    result from tick().
    """

    def __init__(self, session: TypingSession, picker: Callable[[], Snippet], language: Optional[str] = None):
        self.session = session
        self.picker = picker
        self.language = language
        self.state = TimedState.IDLE
        self.duration = 0
        self._reset_totals()

    def _reset_totals(self) -> None:
        self.remaining = 0
        self.total_chars = 0
        self.correct_chars = 0
        self.snippets_completed = 0

    @property
    def running(self) -> bool:
        return self.state == TimedState.RUNNING

    def start(self, duration: int) -> None:
        if duration not in TIMED_DURATIONS:
            raise ValueError(f'Unsupported duration {duration}; expected one of {TIMED_DURATIONS}')
        snippet = self.picker()
        self.duration = duration
        self._reset_totals()
        self.remaining = duration
        self.state = TimedState.RUNNING
        self.session.start(snippet, mode=timed_mode(duration))
        logger.info("[timed-start] duration=%ss", duration)

    def on_key(self, key: str) -> None:
        if not self.running:
            return None
        completed = self.session.on_key(key)
        if completed is not None:
            self.total_chars += completed.char_count
            self.correct_chars += self.session.correct_count()
            self.snippets_completed += 1
            self.session.start(self.picker(), mode=timed_mode(self.duration))
        return None

    def tick(self) -> Optional[SessionResult]:
        if not self.running:
            return None
        self.remaining = max(0, self.remaining - 1)
        if self.remaining > 0:
            return None
        self.state = TimedState.ENDED
        # Drop the partially typed snippet
        self.session.typed = ''
        result = self.aggregate()
        logger.info("[timed-end] duration=%ss snippets=%s chars=%s wpm=%s accuracy=%s",
                    self.duration, self.snippets_completed, self.total_chars, result.wpm, result.accuracy)
        return result

    def aggregate(self) -> SessionResult:
        if self.total_chars == 0:
            wpm, accuracy = 0, 0
        else:
            wpm = round_half_up((self.total_chars / CHARS_PER_WORD) / (self.duration / 60.0))
            accuracy = compute_accuracy(self.correct_chars, self.total_chars)
        return SessionResult(
            wpm=wpm,
            accuracy=accuracy,
            char_count=self.total_chars,
            mode=timed_mode(self.duration),
            language=self.language,
        )

    def cancel(self) -> None:
        if self.running:
            logger.info("[timed-cancel] duration=%ss remaining=%ss discarded_snippets=%s",
                        self.duration, self.remaining, self.snippets_completed)
        self.state = TimedState.IDLE
        self._reset_totals()

    def to_dict(self):
        return {
            'state': self.state.value,
            'duration': self.duration,
            'remaining': self.remaining,
            'total_chars': self.total_chars,
            'correct_chars': self.correct_chars,
            'snippets_completed': self.snippets_completed,
        }
