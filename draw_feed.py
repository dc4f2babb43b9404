"""
Draw history feed: keeps a cached copy of the NY Open Data Powerball results.

The upstream dataset is the Socrata "rows.json" export. A sync fetches it with
the last ETag, normalizes the rows into HistoricalDraw records and stores them
in a small key-value store together with sync metadata. The same store holds
the counter of generated combinations.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from powerball_picker import HistoricalDraw, parse_winning_numbers, to_int_or_none

logger = logging.getLogger(__name__)

KV_DRAWS_KEY = "powerball:draws:v1"
KV_META_KEY = "powerball:meta:v1"
KV_COUNTER_KEY = "powerball:counter:v1"


class FeedError(RuntimeError):
    """Upstream draw feed could not be fetched."""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MemoryStore:
    """Process-local key-value store holding JSON-compatible values."""

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._data.get(key)
        return json.loads(value) if value is not None else None

    def put(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        with self._lock:
            self._data[key] = encoded


class JsonFileStore:
    """Key-value store persisted as one JSON document on disk."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._read().get(key)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            tmp_path = self.path + ".tmp"
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)


def _normalize(s) -> str:
    return str(s if s is not None else "").strip().lower()


def find_column_index(columns: List[Dict], candidates: List[str]) -> int:
    """Index of the first column whose fieldName/name/displayName matches a candidate, else -1."""
    if not isinstance(columns, list):
        return -1
    wanted = [_normalize(c) for c in candidates]

    for i, col in enumerate(columns):
        col = col or {}
        for key in (col.get('fieldName'), col.get('name'), col.get('displayName')):
            if _normalize(key) in wanted:
                return i

    # Substring fallback
    for i, col in enumerate(columns):
        col = col or {}
        haystack = " ".join(_normalize(col.get(k)) for k in ('fieldName', 'name', 'displayName'))
        for candidate in wanted:
            if candidate and candidate in haystack:
                return i

    return -1


def parse_draw_date(value) -> Optional[datetime]:
    """Naive datetime for a feed date; offset-aware values are converted to UTC."""
    if not value:
        return None
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            return datetime.strptime(text, '%m/%d/%Y')
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_socrata_rows(payload: Dict) -> List[HistoricalDraw]:
    """Convert a Socrata rows.json payload into draws, newest first."""
    payload = payload or {}
    meta = payload.get('meta') or {}
    columns = (meta.get('view') or {}).get('columns') or meta.get('columns') or []
    rows = payload.get('data') or []

    idx_date = find_column_index(columns, ["draw date", "draw_date"])
    idx_winning = find_column_index(columns, ["winning numbers", "winning_numbers"])
    idx_multiplier = find_column_index(columns, ["multiplier"])

    if idx_winning == -1:
        logger.warning("Feed payload has no winning numbers column")
        return []

    draws = []
    for row in rows:
        if not isinstance(row, list) or idx_winning >= len(row):
            continue
        parsed = parse_winning_numbers(row[idx_winning])
        if not parsed:
            continue
        draw_date = parse_draw_date(row[idx_date]) if 0 <= idx_date < len(row) else None
        multiplier = to_int_or_none(row[idx_multiplier]) if 0 <= idx_multiplier < len(row) else None
        draws.append(HistoricalDraw(parsed[0], parsed[1], multiplier, draw_date))

    draws.sort(key=lambda d: d.draw_date or datetime.min, reverse=True)
    return draws


def draw_to_dict(draw: HistoricalDraw) -> Dict:
    return {
        'drawDate': draw.draw_date.isoformat() if draw.draw_date else None,
        'main': list(draw.main),
        'powerball': draw.powerball,
        'multiplier': draw.multiplier,
    }


def draw_from_dict(data: Dict) -> HistoricalDraw:
    return HistoricalDraw(
        main=tuple(int(n) for n in data['main']),
        powerball=int(data['powerball']),
        multiplier=to_int_or_none(data.get('multiplier')),
        draw_date=parse_draw_date(data.get('drawDate')),
    )


class DrawFeed:
    """Syncs the upstream feed into the store and serves the cached draws and counter."""

    def __init__(self, store, source_url: str, session: Optional[requests.Session] = None,
                 timeout: float = 30.0):
        self.store = store
        self.source_url = source_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self._counter_lock = threading.Lock()

    def sync(self) -> Dict:
        """Fetch the feed (conditional on the stored ETag) and refresh the cache."""
        meta = self.store.get(KV_META_KEY) or {}
        etag = meta.get('etag')
        headers = {'If-None-Match': etag} if etag else {}

        try:
            response = self.session.get(self.source_url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise FeedError(f"Upstream fetch failed: {e}") from e

        if response.status_code == 304:
            self.store.put(KV_META_KEY, {**meta, 'lastCheckedAt': utc_now_iso()})
            logger.info("Draw feed not modified (etag %s)", etag)
            return {'updated': False}

        if not response.ok:
            raise FeedError(f"Upstream fetch failed: {response.status_code} {response.reason}")

        try:
            payload = response.json()
        except ValueError as e:
            raise FeedError("Upstream returned invalid JSON") from e

        draws = normalize_socrata_rows(payload)
        now = utc_now_iso()

        self.store.put(KV_DRAWS_KEY, {'draws': [draw_to_dict(d) for d in draws], 'updatedAt': now})
        self.store.put(KV_META_KEY, {
            'etag': response.headers.get('ETag'),
            'updatedAt': now,
            'lastCheckedAt': now,
            'sourceUrl': self.source_url,
            'drawCount': len(draws),
        })
        logger.info("Synced %d draws from %s", len(draws), self.source_url)
        return {'updated': True, 'drawCount': len(draws)}

    def cached(self) -> Optional[Dict]:
        """Raw cached document {'draws': [...], 'updatedAt': ...} or None."""
        return self.store.get(KV_DRAWS_KEY)

    def load_draws(self) -> List[HistoricalDraw]:
        stored = self.cached() or {}
        return [draw_from_dict(d) for d in stored.get('draws') or []]

    def meta(self) -> Dict:
        return self.store.get(KV_META_KEY) or {}

    def get_counter(self) -> Dict:
        stored = self.store.get(KV_COUNTER_KEY) or {}
        return {'count': stored.get('count', 0), 'updatedAt': stored.get('updatedAt')}

    def increment_counter(self, count: int = 1) -> Dict:
        with self._counter_lock:
            current = self.get_counter()['count']
            updated = {'count': current + max(int(count), 0), 'updatedAt': utc_now_iso()}
            self.store.put(KV_COUNTER_KEY, updated)
        return updated
