from flask import Blueprint, request, jsonify
from codetype.services.typing.snippets import (
    DIFFICULTIES,
    LANGUAGES,
    daily_label,
    daily_seed,
    daily_snippet,
    filter_snippets,
    get_snippet,
    random_snippet,
)
from codetype.services.typing.practice import utc_today
from codetype.services.typing.store import SqlPreferenceStore
from codetype.services.typing.tracker import ProgressTracker

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the CodeType server!'})

@main.route('/api/snippets')
def list_snippets():
    language = request.args.get('language') or None
    difficulty = request.args.get('difficulty') or None
    return jsonify({
        'snippets': [s.to_dict() for s in filter_snippets(language, difficulty)],
        'languages': list(LANGUAGES),
        'difficulties': list(DIFFICULTIES),
    })

@main.route('/api/snippets/random')
def get_random_snippet():
    snippet = random_snippet(request.args.get('language') or None, request.args.get('difficulty') or None)
    return jsonify(snippet.to_dict())

@main.route('/api/snippets/<string:snippet_id>')
def get_snippet_by_id(snippet_id):
    snippet = get_snippet(snippet_id)
    if not snippet:
        return jsonify({'error': 'Snippet not found'}), 404
    return jsonify(snippet.to_dict())

@main.route('/api/daily')
def get_daily_challenge():
    today = utc_today()
    payload = {
        'snippet': daily_snippet(today).to_dict(),
        'date': today.isoformat(),
        'label': daily_label(today),
        'seed': daily_seed(today),
        'best': None,
    }
    client_id = request.args.get('client_id')
    if client_id:
        payload['best'] = ProgressTracker(SqlPreferenceStore(client_id)).daily_best(today)
    return jsonify(payload)
