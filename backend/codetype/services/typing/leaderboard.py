"""Leaderboard validation and storage.

validate_submission() is the authoritative gate used by the HTTP route;
can_submit() is the same rule applied to a result before anything is sent.
"""

import logging
import math
from typing import List, Optional

from codetype import db
from codetype.models import LeaderboardEntry
from .session import SessionResult, round_half_up

logger = logging.getLogger(__name__)

NAME_MAX_LEN = 20
WPM_MIN = 1
WPM_MAX = 500
MIN_SUBMIT_ACCURACY = 80
FIELD_MAX_LEN = 20


class SubmissionError(ValueError):
    pass


def _is_number(value) -> bool:
    # JSON parsers let NaN and Infinity through
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def can_submit(result: Optional[SessionResult], min_accuracy: int = MIN_SUBMIT_ACCURACY) -> bool:
    if result is None:
        return False
    return result.accuracy >= min_accuracy and WPM_MIN <= result.wpm <= WPM_MAX


def validate_submission(data, min_accuracy: int = MIN_SUBMIT_ACCURACY) -> dict:
    if not isinstance(data, dict):
        raise SubmissionError('Invalid payload')
    name = data.get('name')
    if not isinstance(name, str) or not (1 <= len(name.strip()) <= NAME_MAX_LEN):
        raise SubmissionError(f'Name must be 1-{NAME_MAX_LEN} characters')
    wpm = data.get('wpm')
    if not _is_number(wpm) or wpm < WPM_MIN or wpm > WPM_MAX:
        raise SubmissionError('Invalid WPM')
    accuracy = data.get('accuracy')
    if not _is_number(accuracy) or accuracy < 0 or accuracy > 100:
        raise SubmissionError('Invalid accuracy')
    if accuracy < min_accuracy:
        raise SubmissionError(f'Need at least {min_accuracy}% accuracy to submit')
    mode = data.get('mode') or 'practice'
    if not isinstance(mode, str) or len(mode) > FIELD_MAX_LEN:
        raise SubmissionError('Invalid mode')
    language = data.get('language') or None
    if language is not None and (not isinstance(language, str) or len(language) > FIELD_MAX_LEN):
        raise SubmissionError('Invalid language')
    return {
        'name': name.strip(),
        'wpm': round_half_up(wpm),
        'accuracy': round_half_up(accuracy),
        'mode': mode,
        'language': language,
    }


def submission_payload(result: SessionResult, name: str) -> dict:
    return {
        'name': name,
        'wpm': result.wpm,
        'accuracy': result.accuracy,
        'mode': result.mode,
        'language': result.language,
    }


def add_score(cleaned: dict):
    entry = LeaderboardEntry(**cleaned)
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("leaderboard entry id=%s name=%s wpm=%s mode=%s", entry.id, entry.name, entry.wpm, entry.mode)
    return entry


def get_leaderboard(mode: Optional[str] = None, limit: int = 10) -> List:
    query = LeaderboardEntry.query
    if mode:
        query = query.filter_by(mode=mode)
    return query.order_by(LeaderboardEntry.wpm.desc(), LeaderboardEntry.id.asc()).limit(limit).all()
