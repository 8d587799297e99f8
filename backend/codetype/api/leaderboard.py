from flask import Blueprint, jsonify, request, current_app
from codetype.services.typing.leaderboard import (
    SubmissionError,
    add_score,
    get_leaderboard,
    validate_submission,
)


leaderboard = Blueprint('leaderboard', __name__)


def _parse_limit(raw) -> int:
    cfg = current_app.config
    default = int(cfg.get('LEADERBOARD_DEFAULT_LIMIT', 10))
    max_limit = int(cfg.get('LEADERBOARD_MAX_LIMIT', 100))
    try:
        limit = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, max_limit))


@leaderboard.route('', methods=['GET'])
def list_scores():
    mode = request.args.get('mode') or None
    limit = _parse_limit(request.args.get('limit'))
    try:
        entries = get_leaderboard(mode, limit)
    except Exception as exc:
        current_app.logger.error(f"[leaderboard-get] mode={mode} limit={limit} error={exc}")
        return jsonify({'error': 'Failed to fetch leaderboard'}), 500
    return jsonify([e.to_dict() for e in entries])


@leaderboard.route('', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True)
    try:
        cleaned = validate_submission(data, int(current_app.config.get('MIN_SUBMIT_ACCURACY', 80)))
    except SubmissionError as exc:
        return jsonify({'error': str(exc)}), 400
    try:
        entry = add_score(cleaned)
    except Exception as exc:
        current_app.logger.error(f"[leaderboard-post] name={cleaned['name']} error={exc}")
        return jsonify({'error': 'Failed to add score'}), 500
    current_app.logger.info(f"[leaderboard-post] id={entry.id} wpm={entry.wpm} mode={entry.mode}")
    return jsonify(entry.to_dict()), 201
