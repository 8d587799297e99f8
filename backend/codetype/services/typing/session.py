"""Keystroke-driven typing session.

A TypingSession owns the typed buffer for one snippet and turns it into a
SessionResult once the buffer reaches the snippet length. WPM and accuracy
are computed exactly once, at completion, from the final buffer; only the
progress percentage is live.
"""

import logging
import math
import time
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .snippets import Snippet

logger = logging.getLogger(__name__)

CHARS_PER_WORD = 5

# Named keys that produce buffer content
TAB_KEY = 'Tab'
ENTER_KEY = 'Enter'
BACKSPACE_KEY = 'Backspace'
TAB_TEXT = '  '


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _now_ms() -> float:
    return time.time() * 1000.0


class CharState(str, Enum):
    CORRECT = 'correct'
    INCORRECT = 'incorrect'
    CURRENT = 'current'
    PENDING = 'pending'


@dataclass(frozen=True)
class SessionResult:
    wpm: int
    accuracy: int
    char_count: int
    mode: str = 'practice'
    language: Optional[str] = None

    def to_dict(self):
        return asdict(self)


def compute_wpm(char_count: int, elapsed_ms: Optional[float]) -> int:
    """Words per minute at five characters per word; 0 for an empty interval."""
    if elapsed_ms is None or elapsed_ms <= 0:
        return 0
    minutes = elapsed_ms / 60000.0
    return round_half_up((char_count / CHARS_PER_WORD) / minutes)


def compute_accuracy(correct: int, total: int, empty: int = 100) -> int:
    if total <= 0:
        return empty
    return round_half_up(100.0 * correct / total)


def count_correct(typed: str, code: str) -> int:
    return sum(1 for i in range(min(len(typed), len(code))) if typed[i] == code[i])


@dataclass
class KeyStats:
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect


@dataclass
class KeyHeatmap:
    """Per-key correct/incorrect tally; observational only."""
    keys: Dict[str, KeyStats] = field(default_factory=dict)

    def observe(self, key: str, correct: bool) -> None:
        stats = self.keys.setdefault(key.lower(), KeyStats())
        if correct:
            stats.correct += 1
        else:
            stats.incorrect += 1

    def rating(self, key: str) -> str:
        stats = self.keys.get(key.lower())
        if not stats or stats.total == 0:
            return 'neutral'
        ratio = stats.correct / stats.total
        if ratio >= 0.95:
            return 'perfect'
        if ratio >= 0.8:
            return 'good'
        if ratio >= 0.6:
            return 'okay'
        return 'poor'

    def reset(self) -> None:
        self.keys.clear()

    def to_dict(self):
        return {
            k: {'correct': s.correct, 'incorrect': s.incorrect, 'rating': self.rating(k)}
            for k, s in self.keys.items()
        }


class TypingSession:
    def __init__(self, clock: Optional[Callable[[], float]] = None, heatmap: Optional[KeyHeatmap] = None):
        self.clock = clock or _now_ms
        self.heatmap = heatmap if heatmap is not None else KeyHeatmap()
        self.snippet: Optional[Snippet] = None
        self.mode = 'practice'
        self.typed = ''
        self.started_at: Optional[float] = None
        self.ended_at: Optional[float] = None
        self.result: Optional[SessionResult] = None

    def start(self, snippet: Snippet, mode: str = 'practice') -> None:
        self.snippet = snippet
        self.mode = mode
        self.typed = ''
        self.started_at = None
        self.ended_at = None
        self.result = None

    @property
    def code(self) -> str:
        return self.snippet.code if self.snippet else ''

    @property
    def is_complete(self) -> bool:
        return self.ended_at is not None

    def on_key(self, key: str) -> Optional[SessionResult]:
        """Apply one key event. Returns the result when this key completes the snippet."""
        if self.snippet is None or self.is_complete or not key:
            return None

        if key == BACKSPACE_KEY:
            self.typed = self.typed[:-1]
            return None

        if key == TAB_KEY:
            text = TAB_TEXT
        elif key == ENTER_KEY:
            text = '\n'
        elif len(key) == 1:
            text = key
            pos = len(self.typed)
            expected = self.code[pos] if pos < len(self.code) else None
            self.heatmap.observe(key, key == expected)
        else:
            # Modifiers, arrows and the like
            return None

        # Only a printable key starts the clock; Tab and Enter still insert text
        if self.started_at is None and len(key) == 1:
            self.started_at = self.clock()
        self.typed += text
        if len(self.typed) >= len(self.code):
            return self._complete()
        return None

    def _complete(self) -> SessionResult:
        self.ended_at = self.clock()
        code_len = len(self.code)
        if self.started_at is None:
            logger.warning("session for %s completed without a start time", self.snippet.id)
            elapsed = None
        else:
            elapsed = self.ended_at - self.started_at
        self.result = SessionResult(
            wpm=compute_wpm(code_len, elapsed),
            accuracy=compute_accuracy(self.correct_count(), code_len),
            char_count=code_len,
            mode=self.mode,
            language=self.snippet.language,
        )
        logger.debug("session complete snippet=%s wpm=%s accuracy=%s",
                     self.snippet.id, self.result.wpm, self.result.accuracy)
        return self.result

    def correct_count(self) -> int:
        return count_correct(self.typed, self.code)

    def progress(self) -> int:
        code_len = len(self.code)
        if code_len == 0:
            return 100
        return min(100, round_half_up(len(self.typed) / code_len * 100))

    def char_states(self) -> List[CharState]:
        states = []
        pos = len(self.typed)
        for i, ch in enumerate(self.code):
            if i < pos:
                states.append(CharState.CORRECT if self.typed[i] == ch else CharState.INCORRECT)
            elif i == pos:
                states.append(CharState.CURRENT)
            else:
                states.append(CharState.PENDING)
        return states

    def elapsed_ms(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.ended_at if self.ended_at is not None else self.clock()
        return max(0.0, end - self.started_at)

    def to_dict(self):
        return {
            'snippet': self.snippet.to_dict() if self.snippet else None,
            'mode': self.mode,
            'typed': self.typed,
            'progress': self.progress(),
            'char_states': [s.value for s in self.char_states()],
            'started': self.started_at is not None,
            'complete': self.is_complete,
            'result': self.result.to_dict() if self.result else None,
        }
