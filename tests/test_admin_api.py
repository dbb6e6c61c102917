"""HTTP tests for user administration."""

from lcms.extensions import db
from lcms.models import AuditLog, User, UserRole

USERS = '/admin/api/users'
PASSWORD = 'TestPass123!'


def test_admin_creates_and_lists_users(app, client, admin):
    response = client.post(USERS, json={
        'email': 'Coach@League.org',
        'password': 'LongEnough1',
        'role': 'team_manager',
        'full_name': 'Club Coach',
    })
    assert response.status_code == 201
    created = response.get_json()
    assert created['email'] == 'coach@league.org'
    assert created['role'] == 'team_manager'
    assert created['is_active'] is True

    managers = client.get(f'{USERS}?role=team_manager').get_json()
    assert [user['email'] for user in managers] == ['coach@league.org']
    assert len(client.get(USERS).get_json()) == 2

    assert client.post('/auth/logout').status_code == 200
    response = client.post('/auth/login', json={'email': 'coach@league.org', 'password': 'LongEnough1'})
    assert response.status_code == 200

    with app.app_context():
        assert db.session.query(AuditLog).filter_by(entity_type='user', action='create').count() == 1


def test_user_creation_validation(client, admin):
    assert client.post(USERS, json={'email': 'admin@league.org', 'password': 'LongEnough1'}).status_code == 409
    assert client.post(USERS, json={'email': 'new@league.org', 'password': 'short'}).status_code == 400
    assert client.post(USERS, json={'email': 'not-an-email', 'password': 'LongEnough1'}).status_code == 400

    response = client.post(USERS, json={'email': 'new@league.org', 'password': 'LongEnough1', 'role': 'owner'})
    assert response.status_code == 400
    assert 'owner' in response.get_json()['error']


def test_role_change_and_password_reset(client, make_user, login, admin):
    user_id = make_user('helper@league.org', UserRole.CUP_ADMIN)

    response = client.put(f'{USERS}/{user_id}', json={'role': 'league_admin', 'full_name': 'Helper'})
    assert response.get_json()['role'] == 'league_admin'
    assert response.get_json()['full_name'] == 'Helper'

    assert client.post(f'{USERS}/{user_id}/password', json={'password': 'tiny'}).status_code == 400
    assert client.post(f'{USERS}/{user_id}/password', json={'password': 'BrandNew123'}).status_code == 200
    assert client.put(f'{USERS}/missing', json={'full_name': 'Ghost'}).status_code == 404

    login('helper@league.org', 'BrandNew123')
    assert client.post('/league-management/api/leagues', json={'name': 'Helper League'}).status_code == 201


def test_admin_cannot_lock_themselves_out(app, client, admin):
    assert client.put(f'{USERS}/{admin}', json={'is_active': False}).status_code == 400
    assert client.put(f'{USERS}/{admin}', json={'role': 'cup_admin'}).status_code == 400
    assert client.put(f'{USERS}/{admin}', json={'full_name': 'Head Admin'}).status_code == 200

    with app.app_context():
        user = db.session.get(User, admin)
        assert user.role == UserRole.ADMIN
        assert user.active is True


def test_non_admins_cannot_manage_users(client, make_user, login):
    make_user('leagues@league.org', UserRole.LEAGUE_ADMIN)
    login('leagues@league.org')

    assert client.get(USERS).status_code == 403
    assert client.post(USERS, json={'email': 'x@league.org', 'password': 'LongEnough1'}).status_code == 403


def test_deactivated_session_is_refused(app, client, make_user, admin):
    user_id = make_user('leaving@league.org', UserRole.LEAGUE_ADMIN)
    other = app.test_client()
    assert other.post('/auth/login', json={'email': 'leaving@league.org', 'password': PASSWORD}).status_code == 200
    assert other.get('/auth/me').status_code == 200

    response = client.put(f'{USERS}/{user_id}', json={'is_active': False})
    assert response.get_json()['is_active'] is False

    assert other.get('/auth/me').status_code == 403
    assert other.get('/league-management/api/leagues').status_code == 403
