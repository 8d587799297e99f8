from flask import Blueprint, jsonify, request, current_app
from codetype.services.typing.practice import utc_today
from codetype.services.typing.snippets import create_custom_snippet
from codetype.services.typing.store import (
    SqlPreferenceStore,
    delete_custom_snippet,
    save_custom_snippet,
    set_sound_enabled,
)
from codetype.services.typing.tracker import ProgressTracker


profile = Blueprint('profile', __name__)


def _store(client_id: str) -> SqlPreferenceStore:
    return SqlPreferenceStore(client_id)


@profile.route('/<string:client_id>', methods=['GET'])
def get_profile(client_id):
    tracker = ProgressTracker(_store(client_id), history_limit=int(current_app.config.get('HISTORY_LIMIT', 20)))
    return jsonify(tracker.snapshot(utc_today()))


@profile.route('/<string:client_id>/sound', methods=['PUT'])
def put_sound(client_id):
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get('enabled'), bool):
        return jsonify({'error': 'enabled must be a boolean'}), 400
    return jsonify({'enabled': set_sound_enabled(_store(client_id), data['enabled'])})


@profile.route('/<string:client_id>/custom-snippets', methods=['POST'])
def add_custom_snippet(client_id):
    data = request.get_json(silent=True) or {}
    try:
        snippet = create_custom_snippet(data.get('code') or '', data.get('name'))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    limit = int(current_app.config.get('CUSTOM_SNIPPET_LIMIT', 10))
    saved = save_custom_snippet(_store(client_id), snippet.code, snippet.name, limit=limit)
    return jsonify(saved), 201


@profile.route('/<string:client_id>/custom-snippets/<int:index>', methods=['DELETE'])
def remove_custom_snippet(client_id, index):
    return jsonify(delete_custom_snippet(_store(client_id), index))
