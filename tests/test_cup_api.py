"""HTTP tests for cup management: registration, draw, group stage and tables."""

API = '/cup-management/api'


def _cup_with_teams(client, count=8, teams_per_group=4):
    cup = client.post(f'{API}/cups', json={
        'name': 'County Cup', 'season': '2026', 'total_teams': count, 'teams_per_group': teams_per_group,
    }).get_json()
    team_ids = []
    for i in range(count):
        response = client.post(f"{API}/cups/{cup['id']}/teams", json={'name': f'Club {i}', 'city': 'Town'})
        assert response.status_code == 201
        team_ids.append(response.get_json()['id'])
    return cup['id'], team_ids


def test_create_cup_validates_sizes(client, admin):
    response = client.post(f'{API}/cups', json={'name': 'Tiny', 'total_teams': 4, 'teams_per_group': 8})
    assert response.status_code == 400

    response = client.post(f'{API}/cups', json={'total_teams': 4})
    assert response.status_code == 400


def test_draw_before_registration_complete_conflicts(client, admin):
    cup = client.post(f'{API}/cups', json={'name': 'Half Cup', 'total_teams': 8}).get_json()
    client.post(f"{API}/cups/{cup['id']}/teams", json={'name': 'Early Bird'})

    response = client.post(f"{API}/cups/{cup['id']}/groups/draw", json={'mode': 'random'})
    assert response.status_code == 409
    assert client.get(f"{API}/cups/{cup['id']}/groups").get_json() == []


def test_full_group_stage_flow(client, admin):
    cup_id, _ = _cup_with_teams(client)

    response = client.post(f'{API}/cups/{cup_id}/groups/draw', json={'mode': 'random'})
    assert response.status_code == 201
    groups = response.get_json()['groups']
    assert [g['group_name'] for g in groups] == ['Group A', 'Group B']
    assert all(len(g['teams']) == 4 for g in groups)

    response = client.post(f'{API}/cups/{cup_id}/fixtures/generate', json={})
    assert response.status_code == 201
    matches = response.get_json()['matches']
    assert len(matches) == 12

    first = matches[0]
    response = client.put(f"{API}/cup-matches/{first['id']}/result", json={'home_score': 2, 'away_score': 2})
    assert response.status_code == 200

    tables = client.get(f'{API}/cups/{cup_id}/standings').get_json()
    group = next(t for t in tables if t['group_id'] == first['group_id'])
    drawn = [row for row in group['teams'] if row['played'] == 1]
    assert {row['cup_team_id'] for row in drawn} == {first['home_team']['id'], first['away_team']['id']}
    assert all(row['points'] == 1 and row['goal_difference'] == 0 for row in drawn)

    assert client.post(f'{API}/cups/{cup_id}/status', json={'status': 'group_stage'}).status_code == 200
    public = client.get(f'/api/v1/cups/{cup_id}/standings').get_json()['items']
    assert len(public) == 2


def test_manual_draw(client, admin):
    cup_id, team_ids = _cup_with_teams(client, count=4, teams_per_group=2)

    response = client.post(f'{API}/cups/{cup_id}/groups/draw', json={
        'mode': 'manual',
        'groups': {'Group North': team_ids[:2], 'Group South': team_ids[2:]},
    })
    assert response.status_code == 201
    names = [g['group_name'] for g in response.get_json()['groups']]
    assert names == ['Group North', 'Group South']

    response = client.post(f'{API}/cups/{cup_id}/groups/draw', json={
        'mode': 'manual',
        'groups': {'Group North': team_ids[:2], 'Group South': team_ids[1:]},
    })
    assert response.status_code == 400


def test_fixtures_need_groups(client, admin):
    cup_id, _ = _cup_with_teams(client, count=4)

    response = client.post(f'{API}/cups/{cup_id}/fixtures/generate', json={})
    assert response.status_code == 409
    assert response.get_json()['error'] == 'Please generate groups first'


def test_delete_group_endpoint(client, admin):
    cup_id, _ = _cup_with_teams(client, count=4, teams_per_group=2)
    groups = client.post(f'{API}/cups/{cup_id}/groups/draw', json={}).get_json()['groups']

    assert client.delete(f"{API}/groups/{groups[0]['id']}").status_code == 200

    teams = client.get(f'{API}/cups/{cup_id}/teams').get_json()
    assert sum(1 for t in teams if t['group_id'] is None) == 2


def test_invalid_status_transition(client, admin):
    cup_id, _ = _cup_with_teams(client, count=4)

    response = client.post(f'{API}/cups/{cup_id}/status', json={'status': 'completed'})
    assert response.status_code == 409

    response = client.post(f'{API}/cups/{cup_id}/status', json={'status': 'bogus'})
    assert response.status_code == 400


def test_unknown_cup(client, admin):
    assert client.get(f'{API}/cups/missing').status_code == 404
    assert client.post(f'{API}/cups/missing/groups/draw', json={}).status_code == 404


def test_manual_draw_rejects_malformed_ids(client, admin):
    cup_id, _ = _cup_with_teams(client, count=2, teams_per_group=2)

    response = client.post(f'{API}/cups/{cup_id}/groups/draw', json={
        'mode': 'manual', 'groups': {'Group A': [1, 2]},
    })
    assert response.status_code == 400
    assert '1, 2' in response.get_json()['error']

    response = client.post(f'{API}/cups/{cup_id}/groups/draw', json={
        'mode': 'manual', 'groups': {'Group A': [['x']]},
    })
    assert response.status_code == 400
    assert client.get(f'{API}/cups/{cup_id}/groups').get_json() == []
