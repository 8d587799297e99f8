"""Streaks, WPM history, high score, daily best and achievements.

The module-level functions are pure and operate on plain values; the
ProgressTracker loads and saves those values through a PreferenceStore.
"""

import logging
from dataclasses import dataclass, asdict, field, fields
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from .session import SessionResult
from .store import (
    PreferenceStore,
    HIGHSCORE_KEY,
    STREAK_KEY,
    HISTORY_KEY,
    STATS_KEY,
    UNLOCKED_KEY,
    DAILY_BEST_KEY,
    sound_enabled,
    saved_custom_snippets,
)

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
MIN_HIGH_SCORE_ACCURACY = 80


@dataclass
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_practice_date: Optional[date] = None

    def to_dict(self):
        return {
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'last_practice_date': self.last_practice_date.isoformat() if self.last_practice_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'StreakState':
        last = data.get('last_practice_date')
        try:
            last_date = date.fromisoformat(last) if last else None
        except (TypeError, ValueError):
            last_date = None
        return cls(
            current_streak=_as_int(data.get('current_streak')),
            longest_streak=_as_int(data.get('longest_streak')),
            last_practice_date=last_date,
        )


@dataclass
class AchievementStats:
    total_sessions: int = 0
    best_wpm: int = 0
    best_accuracy: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    perfect_sessions: int = 0
    speed_demon_sessions: int = 0
    total_chars_typed: int = 0

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'AchievementStats':
        return cls(**{f.name: _as_int(data.get(f.name)) for f in fields(cls)})


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    emoji: str
    description: str
    condition: Callable[[AchievementStats], bool] = field(compare=False, repr=False)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'emoji': self.emoji, 'description': self.description}


ACHIEVEMENTS: Tuple[Achievement, ...] = (
    Achievement('first-steps', 'First Steps', '\U0001F476', 'Complete your first typing session', lambda s: s.total_sessions >= 1),
    Achievement('getting-started', 'Getting Started', '\U0001F680', 'Complete 5 typing sessions', lambda s: s.total_sessions >= 5),
    Achievement('dedicated', 'Dedicated Typist', '\U0001F4AA', 'Complete 25 typing sessions', lambda s: s.total_sessions >= 25),
    Achievement('centurion', 'Centurion', '\U0001F3DB️', 'Complete 100 typing sessions', lambda s: s.total_sessions >= 100),
    Achievement('speed-50', 'Warming Up', '\U0001F525', 'Reach 50 WPM', lambda s: s.best_wpm >= 50),
    Achievement('speed-75', 'Getting Fast', '⚡', 'Reach 75 WPM', lambda s: s.best_wpm >= 75),
    Achievement('speed-100', 'Speed Demon', '\U0001F479', 'Reach 100 WPM', lambda s: s.best_wpm >= 100),
    Achievement('speed-150', 'Lightning Fingers', '\U0001F329️', 'Reach 150 WPM', lambda s: s.best_wpm >= 150),
    Achievement('perfectionist', 'Perfectionist', '✨', 'Get 100% accuracy in a session', lambda s: s.perfect_sessions >= 1),
    Achievement('flawless-5', 'Flawless Five', '\U0001F48E', 'Get 100% accuracy 5 times', lambda s: s.perfect_sessions >= 5),
    Achievement('streak-3', 'On a Roll', '\U0001F3AF', '3 day practice streak', lambda s: s.longest_streak >= 3),
    Achievement('streak-7', 'Weekly Warrior', '\U0001F5D3️', '7 day practice streak', lambda s: s.longest_streak >= 7),
    Achievement('streak-30', 'Monthly Master', '\U0001F4C5', '30 day practice streak', lambda s: s.longest_streak >= 30),
    Achievement('marathon', 'Marathon Typist', '\U0001F3C3', 'Type 10,000 characters total', lambda s: s.total_chars_typed >= 10000),
    Achievement('novelist', 'Novelist', '\U0001F4DA', 'Type 50,000 characters total', lambda s: s.total_chars_typed >= 50000),
)


def _as_int(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


# ---- pure functions ----

def next_streak(state: StreakState, today: date) -> Tuple[StreakState, bool]:
    """Advance the streak for a practice session on `today`.

    Returns the new state and whether anything changed. A second call for the
    same day is a no-op.
    """
    if state.last_practice_date == today:
        return state, False
    if state.last_practice_date == today - timedelta(days=1):
        current = state.current_streak + 1
    else:
        current = 1
    return StreakState(
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_practice_date=today,
    ), True


def history_entry(result: SessionResult, when: datetime) -> dict:
    return {'wpm': result.wpm, 'accuracy': result.accuracy, 'date': when.isoformat(), 'mode': result.mode}


def append_history(history: Sequence[dict], entry: dict, limit: int = HISTORY_LIMIT) -> List[dict]:
    return (list(history) + [entry])[-limit:]


def apply_result(stats: AchievementStats, result: SessionResult, streak: StreakState) -> AchievementStats:
    return AchievementStats(
        total_sessions=stats.total_sessions + 1,
        best_wpm=max(stats.best_wpm, result.wpm),
        best_accuracy=max(stats.best_accuracy, result.accuracy),
        current_streak=streak.current_streak,
        longest_streak=max(stats.longest_streak, streak.longest_streak),
        perfect_sessions=stats.perfect_sessions + (1 if result.accuracy == 100 else 0),
        speed_demon_sessions=stats.speed_demon_sessions + (1 if result.wpm >= 100 else 0),
        total_chars_typed=stats.total_chars_typed + result.char_count,
    )


def check_new_achievements(stats: AchievementStats, unlocked: Sequence[str]) -> List[Achievement]:
    already = set(unlocked)
    return [a for a in ACHIEVEMENTS if a.id not in already and a.condition(stats)]


def is_new_daily_best(current: Optional[dict], wpm: int, accuracy: int) -> bool:
    if not current:
        return True
    best_wpm = _as_int(current.get('wpm'))
    if wpm != best_wpm:
        return wpm > best_wpm
    return accuracy > _as_int(current.get('accuracy'))


@dataclass
class ProgressUpdate:
    streak: StreakState
    streak_extended: bool
    history: List[dict]
    stats: AchievementStats
    newly_unlocked: List[Achievement]
    new_high_score: bool = False
    daily_best: Optional[dict] = None
    new_daily_best: bool = False

    @property
    def toast(self) -> Optional[Achievement]:
        # Only the first unlock in a batch is announced
        return self.newly_unlocked[0] if self.newly_unlocked else None

    def to_dict(self):
        return {
            'streak': self.streak.to_dict(),
            'streak_extended': self.streak_extended,
            'history': self.history,
            'stats': self.stats.to_dict(),
            'newly_unlocked': [a.id for a in self.newly_unlocked],
            'toast': self.toast.to_dict() if self.toast else None,
            'new_high_score': self.new_high_score,
            'daily_best': self.daily_best,
            'new_daily_best': self.new_daily_best,
        }


class ProgressTracker:
    def __init__(self, store: PreferenceStore, history_limit: int = HISTORY_LIMIT):
        self.store = store
        self.history_limit = history_limit

    # ---- reads ----

    def streak(self) -> StreakState:
        return StreakState.from_dict(self.store.load_json(STREAK_KEY, {}))

    def history(self) -> List[dict]:
        return [e for e in self.store.load_json(HISTORY_KEY, []) if isinstance(e, dict)]

    def stats(self) -> AchievementStats:
        return AchievementStats.from_dict(self.store.load_json(STATS_KEY, {}))

    def unlocked(self) -> List[str]:
        return [i for i in self.store.load_json(UNLOCKED_KEY, []) if isinstance(i, str)]

    def high_score(self) -> Optional[dict]:
        return self.store.load_json(HIGHSCORE_KEY, {}) or None

    def daily_best(self, today: date) -> Optional[dict]:
        """Today's best daily-challenge run; entries from other days count as absent."""
        best = self.store.load_json(DAILY_BEST_KEY, {})
        if best and best.get('date') == today.isoformat():
            return best
        return None

    # ---- writes ----

    def update_streak(self, today: date) -> Tuple[StreakState, bool]:
        previous = self.streak()
        updated, changed = next_streak(previous, today)
        if changed:
            self.store.save_json(STREAK_KEY, updated.to_dict())
        return updated, updated.current_streak > previous.current_streak

    def record_history(self, result: SessionResult, when: datetime) -> List[dict]:
        updated = append_history(self.history(), history_entry(result, when), self.history_limit)
        self.store.save_json(HISTORY_KEY, updated)
        return updated

    def update_achievements(self, result: SessionResult, streak: StreakState) -> Tuple[AchievementStats, List[Achievement]]:
        stats = apply_result(self.stats(), result, streak)
        self.store.save_json(STATS_KEY, stats.to_dict())
        unlocked = self.unlocked()
        fresh = check_new_achievements(stats, unlocked)
        if fresh:
            self.store.save_json(UNLOCKED_KEY, unlocked + [a.id for a in fresh])
            logger.info("achievements unlocked: %s", ', '.join(a.id for a in fresh))
        return stats, fresh

    def update_high_score(self, result: SessionResult, when: datetime) -> bool:
        if result.accuracy < MIN_HIGH_SCORE_ACCURACY:
            return False
        current = self.high_score()
        if current and result.wpm <= _as_int(current.get('wpm')):
            return False
        self.store.save_json(HIGHSCORE_KEY, {
            'wpm': result.wpm,
            'accuracy': result.accuracy,
            'language': result.language,
            'date': when.isoformat(),
        })
        return True

    def update_daily_best(self, result: SessionResult, snippet_id: str, today: date) -> Tuple[Optional[dict], bool]:
        current = self.daily_best(today)
        if not is_new_daily_best(current, result.wpm, result.accuracy):
            return current, False
        entry = {'date': today.isoformat(), 'wpm': result.wpm, 'accuracy': result.accuracy, 'snippet_id': snippet_id}
        self.store.save_json(DAILY_BEST_KEY, entry)
        return entry, True

    def record(self, result: SessionResult, today: date, when: Optional[datetime] = None,
               snippet_id: Optional[str] = None, daily: bool = False, timed: bool = False) -> ProgressUpdate:
        """Fold one finished result into every persisted counter."""
        when = when or datetime.now()
        streak, extended = self.update_streak(today)
        history = self.record_history(result, when)
        stats, fresh = self.update_achievements(result, streak)
        update = ProgressUpdate(
            streak=streak,
            streak_extended=extended,
            history=history,
            stats=stats,
            newly_unlocked=fresh,
        )
        if not timed:
            update.new_high_score = self.update_high_score(result, when)
        if daily and snippet_id:
            update.daily_best, update.new_daily_best = self.update_daily_best(result, snippet_id, today)
        return update

    def snapshot(self, today: date) -> dict:
        unlocked = set(self.unlocked())
        return {
            'streak': self.streak().to_dict(),
            'stats': self.stats().to_dict(),
            'history': self.history(),
            'high_score': self.high_score(),
            'daily_best': self.daily_best(today),
            'achievements': [dict(a.to_dict(), unlocked=a.id in unlocked) for a in ACHIEVEMENTS],
            'unlocked': sorted(unlocked),
            'sound': sound_enabled(self.store),
            'custom_snippets': saved_custom_snippets(self.store),
        }
