#!/usr/bin/env python3
"""
Powerball Picker - Web Application
Flask-based JSON API for the weighted pick generator, prize checker and the
cached draw history feed.
"""

import logging
import os
import threading
from dataclasses import dataclass
from typing import List, Optional

from flask import Flask, jsonify, request

from draw_feed import DrawFeed, FeedError, JsonFileStore, MemoryStore, draw_to_dict
from picker_config import Settings, load_settings
from powerball_picker import (
    JACKPOT_ODDS, MAX_PICKS, HistoricalDraw, PrizeEvaluator, WeightedPickGenerator,
    clamp_int, fallback_draws, format_pick_line, load_historical_data, validate_locks,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistorySnapshot:
    source: str
    draws: List[HistoricalDraw]
    generator: WeightedPickGenerator

    @property
    def latest(self) -> Optional[HistoricalDraw]:
        return self.draws[0] if self.draws else None


class HistoryProvider:
    """
    Resolves the draw history (feed cache, then CSV file, then embedded sample)
    and hands out a snapshot with a generator built for it. The feed is keyed
    on its sync metadata so the cached draws are only decoded when they change.
    """

    def __init__(self, feed: DrawFeed, data_file: Optional[str] = None, random_source=None):
        self.feed = feed
        self.data_file = data_file
        self.random_source = random_source
        self._lock = threading.Lock()
        self._snapshot_key = None
        self._snapshot: Optional[HistorySnapshot] = None

    def _resolve(self):
        meta = self.feed.meta()
        if meta.get('drawCount'):
            return ('feed', meta.get('updatedAt'), meta.get('etag')), self.feed.load_draws
        if self.data_file and os.path.exists(self.data_file):
            return ('csv', os.path.getmtime(self.data_file)), lambda: load_historical_data(self.data_file)
        return ('fallback', None), fallback_draws

    def snapshot(self) -> HistorySnapshot:
        key, loader = self._resolve()
        with self._lock:
            if key != self._snapshot_key:
                draws = loader()
                self._snapshot = HistorySnapshot(key[0], draws,
                                                 WeightedPickGenerator(draws, self.random_source))
                self._snapshot_key = key
                logger.info("History snapshot rebuilt from %s (%d draws)", key[0], len(draws))
            return self._snapshot


def _bearer_token() -> Optional[str]:
    auth = request.headers.get('Authorization', '')
    if auth.lower().startswith('bearer '):
        return auth[7:].strip() or None
    return None


BODY_NOT_OBJECT = "Request body must be a JSON object."


def _json_body() -> Optional[dict]:
    """Parsed JSON object body; {} when there is no (valid) JSON, None when it isn't an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _error(message: str, status: int):
    return jsonify({'error': message}), status


def create_app(settings: Optional[Settings] = None, feed: Optional[DrawFeed] = None,
               random_source=None) -> Flask:
    settings = settings or load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    if feed is None:
        store = JsonFileStore(settings.store_path) if settings.store_path else MemoryStore()
        feed = DrawFeed(store, settings.source_url, timeout=settings.http_timeout)

    app = Flask(__name__)
    history = HistoryProvider(feed, settings.data_file, random_source)
    app.config['PICKER_SETTINGS'] = settings
    app.extensions['draw_feed'] = feed
    app.extensions['history'] = history

    @app.route('/api/info')
    def api_info():
        snap = history.snapshot()
        meta = feed.meta()
        return jsonify({
            'total_draws': len(snap.draws),
            'history_source': snap.source,
            'jackpot_odds': JACKPOT_ODDS,
            'latest_draw': draw_to_dict(snap.latest) if snap.latest else None,
            'updated_at': meta.get('updatedAt'),
        })

    @app.route('/api/powerball/draws')
    def api_draws():
        stored = feed.cached()
        if not stored:
            return jsonify({'draws': [], 'updatedAt': None, 'source': 'kv', 'missing': True}), 404
        response = jsonify(stored)
        response.headers['Cache-Control'] = 'public, max-age=300'
        return response

    @app.route('/api/powerball/sync', methods=['POST'])
    def api_sync():
        if not settings.sync_token:
            return _error("Sync token not configured. Set POWERBALL_SYNC_TOKEN.", 500)

        provided = _bearer_token() or request.headers.get('x-sync-token') or request.args.get('token')
        if not provided or provided != settings.sync_token:
            return _error("Unauthorized", 401)

        try:
            result = feed.sync()
        except FeedError as e:
            logger.error("Draw sync failed: %s", e)
            return jsonify({'ok': False, 'error': str(e)}), 502
        return jsonify({'ok': True, **result})

    @app.route('/api/powerball/counter')
    def api_counter():
        response = jsonify(feed.get_counter())
        response.headers['Cache-Control'] = 'public, max-age=60'
        return response

    @app.route('/api/powerball/counter/increment', methods=['POST'])
    def api_counter_increment():
        data = _json_body()
        if data is None:
            return _error(BODY_NOT_OBJECT, 400)
        count = clamp_int(data.get('count', 1), 1, MAX_PICKS)
        response = jsonify(feed.increment_counter(count))
        response.headers['Cache-Control'] = 'no-cache'
        return response

    @app.route('/api/generate', methods=['POST'])
    def api_generate():
        data = _json_body()
        if data is None:
            return _error(BODY_NOT_OBJECT, 400)
        try:
            main_locked, pb_locked = validate_locks(data.get('main_locked') or [],
                                                    data.get('powerball_locked') or [])
        except (TypeError, ValueError) as e:
            return _error(str(e), 400)

        snap = history.snapshot()
        picks = snap.generator.generate_picks(
            data.get('count', 5), data.get('randomness', 70), main_locked, pb_locked)

        evaluator = PrizeEvaluator(snap.latest) if snap.latest else None
        counter = feed.increment_counter(len(picks))

        return jsonify({
            'picks': [
                {
                    **pick.to_dict(),
                    'line': format_pick_line(pick),
                    'check': evaluator.check(pick).to_dict() if evaluator else None,
                }
                for pick in picks
            ],
            'count': len(picks),
            'combinations_generated': counter['count'],
        })

    @app.route('/api/check', methods=['POST'])
    def api_check():
        data = _json_body()
        if data is None:
            return _error(BODY_NOT_OBJECT, 400)
        lines = data.get('lines')
        if lines is None:
            lines = str(data.get('text') or '').splitlines()
        if not isinstance(lines, list):
            return _error("lines must be a list of strings", 400)

        latest = history.snapshot().latest
        if latest is None:
            return _error("No recent draw loaded yet.", 503)

        return jsonify({
            'draw': draw_to_dict(latest),
            'results': PrizeEvaluator(latest).check_lines(lines),
        })

    @app.route('/api/prize-chart')
    def api_prize_chart():
        latest = history.snapshot().latest
        multiplier = request.args.get('multiplier')
        if multiplier is None and latest is not None:
            multiplier = latest.multiplier
        return jsonify({
            'multiplier': multiplier,
            'tiers': PrizeEvaluator.prize_chart(multiplier),
            'jackpot_odds': JACKPOT_ODDS,
        })

    @app.route('/api/analysis')
    def api_analysis():
        snap = history.snapshot()
        analyzer = snap.generator.freq_analyzer
        return jsonify({
            'top_main': [{'number': n, 'count': c} for n, c in analyzer.get_hot_numbers(10)],
            'top_pb': [{'number': n, 'count': c} for n, c in analyzer.get_hot_numbers(5, 'powerball')],
            'total_draws': len(snap.draws),
            'expected_white': analyzer.expected_frequency('white'),
            'expected_pb': analyzer.expected_frequency('powerball'),
        })

    @app.route('/api/recent-draws')
    def api_recent():
        count = clamp_int(request.args.get('count', 20), 1, 100)
        return jsonify([draw_to_dict(d) for d in history.snapshot().draws[:count]])

    @app.cli.command('sync-draws')
    def sync_draws_command():
        """Pull the latest draws from the upstream feed (run from cron)."""
        result = feed.sync()
        print(f"updated={result['updated']} draws={result.get('drawCount', '-')}")

    # Add CORS headers
    @app.after_request
    def after_request(response):
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization, x-sync-token'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        return response

    return app


app = create_app()


if __name__ == '__main__':
    print("Starting Powerball Picker web server...")
    app.run(debug=True, port=5050)
