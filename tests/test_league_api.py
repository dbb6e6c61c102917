"""HTTP tests for league management, fixtures, results and public standings."""

from lcms.extensions import db
from lcms.models import AuditLog, UserRole

API = '/league-management/api'


def _setup_division(client, team_names):
    league = client.post(f'{API}/leagues', json={'name': 'Sunday League', 'sport': 'football'}).get_json()
    division = client.post(
        f"{API}/leagues/{league['id']}/divisions", json={'name': 'Division One', 'max_teams': 8}
    ).get_json()
    teams = {}
    for name in team_names:
        response = client.post(f"{API}/divisions/{division['id']}/teams", json={'name': name})
        assert response.status_code == 201
        teams[name] = response.get_json()['id']
    return league['id'], division['id'], teams


def _pair(matches, team_a, team_b):
    for match in matches:
        if {match['home_team']['id'], match['away_team']['id']} == {team_a, team_b}:
            return match
    raise AssertionError('match not found')


def test_league_crud(client, admin):
    response = client.post(f'{API}/leagues', json={'name': 'Metro League', 'sport': 'basketball'})
    assert response.status_code == 201
    league_id = response.get_json()['id']

    response = client.put(f'{API}/leagues/{league_id}', json={'description': 'Weeknights'})
    assert response.get_json()['description'] == 'Weeknights'

    assert client.post(f'{API}/leagues/{league_id}/archive').get_json()['status'] == 'archived'
    assert client.get(f'{API}/leagues').get_json() == []
    assert len(client.get(f'{API}/leagues?include_archived=true').get_json()) == 1

    assert client.post(f'{API}/leagues/{league_id}/restore').get_json()['status'] == 'active'
    assert client.delete(f'{API}/leagues/{league_id}').status_code == 200
    assert client.get(f'{API}/leagues/{league_id}').status_code == 404


def test_invalid_sport_is_rejected(client, admin):
    response = client.post(f'{API}/leagues', json={'name': 'Odd League', 'sport': 'quidditch'})
    assert response.status_code == 400
    assert 'quidditch' in response.get_json()['error']


def test_division_lists_team_counts(client, admin):
    league_id, division_id, _ = _setup_division(client, ['A', 'B', 'C'])

    divisions = client.get(f'{API}/leagues/{league_id}/divisions').get_json()
    assert divisions[0]['id'] == division_id
    assert divisions[0]['team_count'] == 3


def test_division_capacity(client, admin):
    _, division_id, _ = _setup_division(client, [])
    client.put(f'{API}/divisions/{division_id}', json={'max_teams': 2})
    client.post(f'{API}/divisions/{division_id}/teams', json={'name': 'One'})
    client.post(f'{API}/divisions/{division_id}/teams', json={'name': 'Two'})

    response = client.post(f'{API}/divisions/{division_id}/teams', json={'name': 'Three'})
    assert response.status_code == 409


def test_generate_fixtures_endpoint(app, client, admin):
    _, division_id, _ = _setup_division(client, ['A', 'B', 'C', 'D', 'E'])

    response = client.post(
        f'{API}/divisions/{division_id}/fixtures/generate',
        json={'start_date': '2026-09-05T15:00:00', 'days_between_rounds': 7},
    )
    assert response.status_code == 201
    body = response.get_json()
    assert len(body['matches']) == 10
    assert body['rounds'] == 5

    with app.app_context():
        logged = db.session.query(AuditLog).filter_by(action='generate_fixtures', entity_id=division_id).count()
    assert logged == 1


def test_generate_without_replace_conflicts(client, admin):
    _, division_id, _ = _setup_division(client, ['A', 'B'])
    client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={})

    response = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={'replace': False})
    assert response.status_code == 409


def test_generate_needs_two_teams(client, admin):
    _, division_id, _ = _setup_division(client, ['Solo'])

    response = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={})
    assert response.status_code == 400
    assert 'at least 2' in response.get_json()['error']


def test_generate_unknown_division(client, admin):
    response = client.post(f'{API}/divisions/nope/fixtures/generate', json={})
    assert response.status_code == 404


def test_results_flow_into_standings(client, admin):
    league_id, division_id, teams = _setup_division(client, ['A', 'B', 'C'])
    matches = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={}).get_json()['matches']

    ab = _pair(matches, teams['A'], teams['B'])
    scores = {teams['A']: 2, teams['B']: 1}
    response = client.put(f"{API}/matches/{ab['id']}/result", json={
        'status': 'completed',
        'home_score': scores[ab['home_team']['id']],
        'away_score': scores[ab['away_team']['id']],
    })
    assert response.status_code == 200

    bc = _pair(matches, teams['B'], teams['C'])
    client.put(f"{API}/matches/{bc['id']}/result", json={'home_score': 0, 'away_score': 0})

    table = client.get(f'{API}/divisions/{division_id}/standings').get_json()
    assert [row['team']['id'] for row in table] == [teams['A'], teams['C'], teams['B']]
    assert [row['points'] for row in table] == [3, 1, 1]
    assert table[2]['goal_difference'] == -1

    public = client.get(f'/api/v1/divisions/{division_id}/standings').get_json()['items']
    assert [row['position'] for row in public] == [1, 2, 3]

    everything = client.get(f'/api/v1/standings?league_id={league_id}').get_json()['items']
    assert everything[0]['division']['id'] == division_id


def test_result_needs_both_scores(client, admin):
    _, division_id, _ = _setup_division(client, ['A', 'B'])
    match = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={}).get_json()['matches'][0]

    response = client.put(f"{API}/matches/{match['id']}/result", json={'status': 'completed', 'home_score': 1})
    assert response.status_code == 400

    response = client.put(f"{API}/matches/{match['id']}/result", json={'home_score': -1, 'away_score': 0})
    assert response.status_code == 400


def test_result_rejects_boolean_scores(client, admin):
    _, division_id, _ = _setup_division(client, ['A', 'B'])
    match = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={}).get_json()['matches'][0]

    response = client.put(f"{API}/matches/{match['id']}/result", json={'home_score': True, 'away_score': False})
    assert response.status_code == 400
    assert 'whole number' in response.get_json()['error']

    table = client.get(f'{API}/divisions/{division_id}/standings').get_json()
    assert all(row['played'] == 0 for row in table)


def test_clear_fixtures_endpoint(client, admin):
    _, division_id, _ = _setup_division(client, ['A', 'B', 'C', 'D'])
    client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={})

    response = client.delete(f'{API}/divisions/{division_id}/fixtures')
    assert response.get_json()['deleted'] == 6
    assert client.get(f'{API}/divisions/{division_id}/matches').get_json() == []


def test_manual_match_validation(client, admin):
    _, division_id, teams = _setup_division(client, ['A', 'B'])

    response = client.post(f'{API}/divisions/{division_id}/matches', json={
        'home_team_id': teams['A'], 'away_team_id': teams['A'],
    })
    assert response.status_code == 400

    response = client.post(f'{API}/divisions/{division_id}/matches', json={
        'home_team_id': teams['A'], 'away_team_id': teams['B'], 'match_date': '2026-10-01T19:30:00',
    })
    assert response.status_code == 201
    assert response.get_json()['match_date'].startswith('2026-10-01T19:30')


def test_official_reports_only_own_matches(client, make_user, login, admin):
    official_id = make_user('ref@league.org', UserRole.MATCH_OFFICIAL, 'Ref One')
    make_user('other@league.org', UserRole.MATCH_OFFICIAL, 'Ref Two')
    _, division_id, teams = _setup_division(client, ['A', 'B', 'C', 'D'])
    matches = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={}).get_json()['matches']
    assigned, unassigned = matches[0], matches[1]
    response = client.put(f"{API}/matches/{assigned['id']}", json={'referee_id': official_id})
    assert response.status_code == 200

    login('ref@league.org')
    mine = client.get('/official/api/matches').get_json()
    assert [m['id'] for m in mine] == [assigned['id']]

    response = client.put(f"/official/api/matches/{unassigned['id']}/result", json={'home_score': 1, 'away_score': 0})
    assert response.status_code == 403

    response = client.put(f"/official/api/matches/{assigned['id']}/result", json={'home_score': 1, 'away_score': 0})
    assert response.status_code == 200
    assert response.get_json()['status'] == 'completed'

    login('other@league.org')
    response = client.put(f"/official/api/matches/{assigned['id']}/result", json={'home_score': 5, 'away_score': 0})
    assert response.status_code == 403


def test_referee_must_be_official(client, make_user, admin):
    manager_id = make_user('manager@league.org', UserRole.TEAM_MANAGER)
    _, division_id, _ = _setup_division(client, ['A', 'B'])
    match = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={}).get_json()['matches'][0]

    response = client.put(f"{API}/matches/{match['id']}", json={'referee_id': manager_id})
    assert response.status_code == 400
