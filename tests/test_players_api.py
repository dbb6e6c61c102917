"""HTTP tests for rosters, official event reporting and the scorer leaderboard."""

from lcms.extensions import db
from lcms.models import MatchEvent, UserRole

API = '/league-management/api'


def _two_team_match(client, referee_id=None):
    league = client.post(f'{API}/leagues', json={'name': 'Cup Town League', 'sport': 'football'}).get_json()
    division = client.post(f"{API}/leagues/{league['id']}/divisions", json={'name': 'Premier'}).get_json()
    home = client.post(f"{API}/divisions/{division['id']}/teams", json={'name': 'Rovers'}).get_json()
    away = client.post(f"{API}/divisions/{division['id']}/teams", json={'name': 'United'}).get_json()
    match = client.post(
        f"{API}/divisions/{division['id']}/matches",
        json={'home_team_id': home['id'], 'away_team_id': away['id'], 'referee_id': referee_id},
    ).get_json()
    return league['id'], division['id'], home['id'], away['id'], match['id']


def _add_player(client, team_id, name, jersey_number, position='forward'):
    response = client.post(
        f'{API}/teams/{team_id}/players',
        json={'name': name, 'jersey_number': jersey_number, 'position': position},
    )
    assert response.status_code == 201
    return response.get_json()['id']


def test_roster_crud(client, admin):
    _, _, home, _, _ = _two_team_match(client)

    response = client.post(
        f'{API}/teams/{home}/players',
        json={'name': 'Sam Keeper', 'jersey_number': 1, 'position': 'Goalkeeper', 'date_of_birth': '2001-04-12'},
    )
    assert response.status_code == 201
    player = response.get_json()
    assert player['position'] == 'goalkeeper'
    assert player['date_of_birth'] == '2001-04-12'

    response = client.put(f"{API}/players/{player['id']}", json={'jersey_number': 13, 'nationality': 'Wales'})
    assert response.get_json()['jersey_number'] == 13
    assert response.get_json()['nationality'] == 'Wales'

    assert client.post(f"{API}/players/{player['id']}/toggle-active").get_json()['is_active'] is False
    assert client.get(f'{API}/teams/{home}/players').get_json() == []
    assert len(client.get(f'{API}/teams/{home}/players?include_inactive=true').get_json()) == 1

    assert client.delete(f"{API}/players/{player['id']}").status_code == 200
    assert client.get(f'{API}/teams/{home}/players?include_inactive=true').get_json() == []


def test_roster_validation(client, admin):
    _, _, home, _, _ = _two_team_match(client)
    _add_player(client, home, 'First Nine', 9)

    response = client.post(f'{API}/teams/{home}/players', json={'name': 'Second Nine', 'jersey_number': 9})
    assert response.status_code == 400
    assert 'Jersey number 9' in response.get_json()['error']

    for payload in ({'name': ''}, {'name': 'X', 'jersey_number': 100}, {'name': 'X', 'jersey_number': True},
                    {'name': 'X', 'position': 'libero'}):
        assert client.post(f'{API}/teams/{home}/players', json=payload).status_code == 400

    assert client.post(f'{API}/teams/missing/players', json={'name': 'Nobody'}).status_code == 404


def test_released_player_frees_jersey(client, admin):
    _, _, home, _, _ = _two_team_match(client)
    veteran = _add_player(client, home, 'Old Seven', 7)
    client.post(f'{API}/players/{veteran}/toggle-active')

    _add_player(client, home, 'New Seven', 7)

    response = client.post(f'{API}/players/{veteran}/toggle-active')
    assert response.status_code == 400


def test_roster_needs_league_admin(client, make_user, login, admin):
    _, _, home, _, _ = _two_team_match(client)
    make_user('cups@league.org', UserRole.CUP_ADMIN)
    login('cups@league.org')

    assert client.get(f'{API}/teams/{home}/players').status_code == 403
    assert client.post(f'{API}/teams/{home}/players', json={'name': 'Sneaky'}).status_code == 403


def test_official_reports_events(app, client, make_user, login, admin):
    official_id = make_user('ref@league.org', UserRole.MATCH_OFFICIAL, 'Ref One')
    _, _, home, away, match_id = _two_team_match(client, referee_id=official_id)
    _, _, other_home, _, other_match = _two_team_match(client)
    striker = _add_player(client, home, 'Striker', 9)
    defender = _add_player(client, away, 'Defender', 4, 'defender')
    outsider = _add_player(client, other_home, 'Outsider', 10)

    login('ref@league.org')
    sheet = client.get(f'/official/api/matches/{match_id}').get_json()
    assert [p['name'] for p in sheet['home_players']] == ['Striker']
    assert [p['name'] for p in sheet['away_players']] == ['Defender']

    response = client.post(
        f'/official/api/matches/{match_id}/events',
        json={'team_id': home, 'player_id': striker, 'event_type': 'goal', 'minute': 23},
    )
    assert response.status_code == 201
    assert response.get_json()['player']['name'] == 'Striker'

    client.post(
        f'/official/api/matches/{match_id}/events',
        json={'team_id': away, 'player_id': defender, 'event_type': 'yellow_card', 'minute': 90,
              'extra_time_minute': 2},
    )

    # Player from another club
    response = client.post(
        f'/official/api/matches/{match_id}/events',
        json={'team_id': home, 'player_id': outsider, 'event_type': 'goal', 'minute': 30},
    )
    assert response.status_code == 400

    # Player filed under the wrong side
    response = client.post(
        f'/official/api/matches/{match_id}/events',
        json={'team_id': away, 'player_id': striker, 'event_type': 'goal', 'minute': 30},
    )
    assert response.status_code == 400

    for bad in ({'minute': True}, {'minute': 131}, {'minute': -1}, {'minute': None}, {'event_type': 'dive'}):
        payload = {'team_id': home, 'player_id': striker, 'event_type': 'goal', 'minute': 10}
        payload.update(bad)
        assert client.post(f'/official/api/matches/{match_id}/events', json=payload).status_code == 400

    response = client.post(
        f'/official/api/matches/{other_match}/events',
        json={'team_id': other_home, 'player_id': outsider, 'event_type': 'goal', 'minute': 5},
    )
    assert response.status_code == 403

    events = client.get(f'/api/v1/matches/{match_id}/events').get_json()['items']
    assert [(e['event_type'], e['minute']) for e in events] == [('goal', 23), ('yellow_card', 90)]

    with app.app_context():
        assert db.session.query(MatchEvent).count() == 2
        assert all(event.recorded_by_id == official_id for event in db.session.query(MatchEvent))


def test_no_events_for_cancelled_match(client, admin):
    _, _, home, _, match_id = _two_team_match(client)
    striker = _add_player(client, home, 'Striker', 9)
    client.put(f'{API}/matches/{match_id}/result', json={'status': 'cancelled'})

    response = client.post(
        f'/official/api/matches/{match_id}/events',
        json={'team_id': home, 'player_id': striker, 'event_type': 'goal', 'minute': 12},
    )
    assert response.status_code == 409


def test_top_scorers(client, admin):
    league_id, division_id, home, away, match_id = _two_team_match(client)
    ace = _add_player(client, home, 'Ace', 9)
    backup = _add_player(client, home, 'Backup', 11)
    unlucky = _add_player(client, away, 'Unlucky', 5, 'defender')

    def goal(team_id, player_id, minute, kind='goal'):
        response = client.post(
            f'/official/api/matches/{match_id}/events',
            json={'team_id': team_id, 'player_id': player_id, 'event_type': kind, 'minute': minute},
        )
        assert response.status_code == 201

    goal(home, ace, 10)
    goal(home, ace, 55, 'penalty')
    goal(home, backup, 70)
    goal(away, unlucky, 80, 'own_goal')
    goal(away, unlucky, 81, 'own_goal')
    goal(away, unlucky, 82, 'own_goal')

    body = client.get(f'/api/v1/stats/leaders?division_id={division_id}').get_json()
    assert body['stat'] == 'goals'
    assert [(row['player']['name'], row['value']) for row in body['items']] == [('Ace', 2), ('Backup', 1)]
    assert body['items'][0]['player']['team_name'] == 'Rovers'
    assert body['items'][0]['matches'] == 1

    limited = client.get(f'/api/v1/stats/leaders?league_id={league_id}&limit=1').get_json()['items']
    assert [row['player']['name'] for row in limited] == ['Ace']

    assert client.get('/api/v1/stats/leaders?league_id=elsewhere').get_json()['items'] == []
    assert client.get('/api/v1/stats/leaders?stat=assists').status_code == 400
    assert client.get('/api/v1/stats/leaders?limit=zero').status_code == 400


def test_regenerating_fixtures_drops_events(app, client, admin):
    _, division_id, home, _, match_id = _two_team_match(client)
    striker = _add_player(client, home, 'Striker', 9)
    client.post(
        f'/official/api/matches/{match_id}/events',
        json={'team_id': home, 'player_id': striker, 'event_type': 'goal', 'minute': 3},
    )

    response = client.post(f'{API}/divisions/{division_id}/fixtures/generate', json={'replace': True})
    assert response.status_code == 201

    with app.app_context():
        assert db.session.query(MatchEvent).count() == 0
    assert client.get(f'{API}/teams/{home}/players').get_json()[0]['name'] == 'Striker'


def test_admin_removes_event(client, admin):
    _, _, home, _, match_id = _two_team_match(client)
    striker = _add_player(client, home, 'Striker', 9)
    event = client.post(
        f'/official/api/matches/{match_id}/events',
        json={'team_id': home, 'player_id': striker, 'event_type': 'red_card', 'minute': 44},
    ).get_json()

    assert len(client.get(f'{API}/matches/{match_id}/events').get_json()) == 1
    assert client.delete(f"{API}/events/{event['id']}").status_code == 200
    assert client.get(f'{API}/matches/{match_id}/events').get_json() == []
    assert client.delete(f"{API}/events/{event['id']}").status_code == 404
