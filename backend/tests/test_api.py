def submit(client, **overrides):
    body = {'name': 'Ada', 'wpm': 80, 'accuracy': 95, 'mode': 'practice', 'language': 'python'}
    body.update(overrides)
    return client.post('/api/leaderboard', json=body)


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'CodeType' in res.get_json()['message']


def test_submit_and_list(client):
    res = submit(client)
    assert res.status_code == 201
    created = res.get_json()
    assert created['name'] == 'Ada'
    assert created['wpm'] == 80
    assert created['created_at']
    submit(client, name='Linus', wpm=120, mode='60s', language=None)
    submit(client, name='Grace', wpm=95)
    res = client.get('/api/leaderboard')
    assert res.status_code == 200
    rows = res.get_json()
    assert [r['wpm'] for r in rows] == [120, 95, 80]


def test_list_filters_by_mode_and_limit(client):
    submit(client, wpm=50)
    submit(client, wpm=60, mode='daily')
    submit(client, wpm=70, mode='daily')
    rows = client.get('/api/leaderboard?mode=daily&limit=1').get_json()
    assert len(rows) == 1
    assert rows[0]['wpm'] == 70
    # Garbage limit falls back to the default
    assert len(client.get('/api/leaderboard?limit=abc').get_json()) == 3


def test_accuracy_floor(client):
    res = submit(client, accuracy=79)
    assert res.status_code == 400
    assert '80%' in res.get_json()['error']
    assert submit(client, accuracy=80).status_code == 201


def test_validation_errors(client):
    assert submit(client, name='').status_code == 400
    assert submit(client, name='   ').status_code == 400
    assert submit(client, name='x' * 21).status_code == 400
    assert submit(client, wpm=0).status_code == 400
    assert submit(client, wpm=501).status_code == 400
    assert submit(client, wpm='fast').status_code == 400
    assert submit(client, accuracy=101).status_code == 400
    assert submit(client, accuracy=True).status_code == 400
    for raw in ('NaN', 'Infinity', '-Infinity'):
        body = '{"name": "Ada", "wpm": 100, "accuracy": %s}' % raw
        res = client.post('/api/leaderboard', data=body, content_type='application/json')
        assert res.status_code == 400
    wpm_nan = '{"name": "Ada", "wpm": NaN, "accuracy": 95}'
    assert client.post('/api/leaderboard', data=wpm_nan, content_type='application/json').status_code == 400
    res = client.post('/api/leaderboard', data='not json', content_type='application/json')
    assert res.status_code == 400
    assert client.get('/api/leaderboard').get_json() == []


def test_submit_trims_and_rounds(client):
    res = submit(client, name='  Ada  ', wpm=72.5, accuracy=88.4, mode=None)
    assert res.status_code == 201
    row = res.get_json()
    assert row['name'] == 'Ada'
    assert row['wpm'] == 73
    assert row['accuracy'] == 88
    assert row['mode'] == 'practice'


def test_snippet_endpoints(client):
    data = client.get('/api/snippets?language=python').get_json()
    assert data['snippets']
    assert all(s['language'] == 'python' for s in data['snippets'])
    assert {l['id'] for l in data['languages']} >= {'python', 'rust'}
    # No c/hard snippets exist; the pick comes from the whole catalog
    assert client.get('/api/snippets/random?language=c&difficulty=hard').status_code == 200
    assert client.get('/api/snippets/random?language=go').get_json()['language'] == 'go'
    assert client.get('/api/snippets/js-1').get_json()['name'] == 'Array Map'
    assert client.get('/api/snippets/missing').status_code == 404


def test_daily_endpoint(client):
    first = client.get('/api/daily').get_json()
    second = client.get('/api/daily').get_json()
    assert first['snippet']['id'] == second['snippet']['id']
    assert first['best'] is None
    assert first['seed'] == int(first['date'].replace('-', ''))


def test_profile_endpoints(client):
    profile = client.get('/api/profile/abc123').get_json()
    assert profile['stats']['total_sessions'] == 0
    assert profile['streak']['current_streak'] == 0
    assert len(profile['achievements']) == 15
    assert profile['sound'] is False

    assert client.put('/api/profile/abc123/sound', json={'enabled': True}).get_json() == {'enabled': True}
    assert client.put('/api/profile/abc123/sound', json={'enabled': 'yes'}).status_code == 400

    res = client.post('/api/profile/abc123/custom-snippets', json={'code': 'x = 1', 'name': 'one'})
    assert res.status_code == 201
    assert res.get_json() == [{'code': 'x = 1', 'name': 'one'}]
    assert client.post('/api/profile/abc123/custom-snippets', json={'code': ' '}).status_code == 400
    assert client.delete('/api/profile/abc123/custom-snippets/0').get_json() == []

    profile = client.get('/api/profile/abc123').get_json()
    assert profile['sound'] is True
    # Other clients are unaffected
    assert client.get('/api/profile/other').get_json()['sound'] is False
