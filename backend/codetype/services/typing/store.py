"""Per-client preference storage.

Values are opaque JSON blobs under short keys. Reads never raise on bad
data: a blob that fails to decode, or decodes to the wrong shape, is
replaced by the caller's default.
"""

import copy
import json
import logging
from typing import Any, Dict, List, Optional

from codetype import db
from codetype.models import Preference

logger = logging.getLogger(__name__)

HIGHSCORE_KEY = 'highscore'
STREAK_KEY = 'streak'
HISTORY_KEY = 'wpm-history'
STATS_KEY = 'achievement-stats'
UNLOCKED_KEY = 'unlocked-achievements'
DAILY_BEST_KEY = 'daily-best'
SOUND_KEY = 'sound'
CUSTOM_SNIPPETS_KEY = 'custom-snippets'
NAME_KEY = 'name'

CUSTOM_SNIPPET_LIMIT = 10


class PreferenceStore:
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def load_json(self, key: str, default: Any) -> Any:
        raw = self.get(key)
        if raw is None:
            return copy.deepcopy(default)
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("discarding malformed preference %r", key)
            return copy.deepcopy(default)
        if default is not None and not isinstance(value, type(default)):
            logger.warning("discarding preference %r of unexpected type %s", key, type(value).__name__)
            return copy.deepcopy(default)
        return value

    def save_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))


class MemoryPreferenceStore(PreferenceStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def clear(self):
        self._data.clear()


class SqlPreferenceStore(PreferenceStore):
    """Preference rows in the `preference` table, scoped by a client namespace."""

    def __init__(self, namespace: str):
        if not namespace:
            raise ValueError('namespace is required')
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key):
        row = db.session.get(Preference, self._key(key))
        return row.value if row else None

    def set(self, key, value):
        try:
            row = db.session.get(Preference, self._key(key))
            if row is None:
                row = Preference(key=self._key(key), value=value)
            else:
                row.value = value
            db.session.add(row)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def delete(self, key):
        try:
            Preference.query.filter_by(key=self._key(key)).delete()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def clear(self):
        try:
            Preference.query.filter(Preference.key.like(f"{self.namespace}:%")).delete(synchronize_session=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


def sound_enabled(store: PreferenceStore) -> bool:
    return bool(store.load_json(SOUND_KEY, False))


def set_sound_enabled(store: PreferenceStore, enabled: bool) -> bool:
    store.save_json(SOUND_KEY, bool(enabled))
    return bool(enabled)


def saved_custom_snippets(store: PreferenceStore) -> List[Dict[str, str]]:
    items = store.load_json(CUSTOM_SNIPPETS_KEY, [])
    return [i for i in items if isinstance(i, dict) and isinstance(i.get('code'), str)]


def save_custom_snippet(store: PreferenceStore, code: str, name: str, limit: int = CUSTOM_SNIPPET_LIMIT) -> List[Dict[str, str]]:
    """Append a snippet, keeping only the most recent `limit` entries."""
    updated = (saved_custom_snippets(store) + [{'code': code, 'name': name}])[-limit:]
    store.save_json(CUSTOM_SNIPPETS_KEY, updated)
    return updated


def delete_custom_snippet(store: PreferenceStore, index: int) -> List[Dict[str, str]]:
    items = saved_custom_snippets(store)
    if 0 <= index < len(items):
        del items[index]
        store.save_json(CUSTOM_SNIPPETS_KEY, items)
    return items


def saved_name(store: PreferenceStore) -> Optional[str]:
    name = store.load_json(NAME_KEY, '')
    return name or None


def save_name(store: PreferenceStore, name: str) -> None:
    store.save_json(NAME_KEY, name)
