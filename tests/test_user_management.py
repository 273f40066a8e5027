from examdesk_app import db
from examdesk_app.models import RetiredUser, User


def test_listings_require_admin(client, make_user, auth_header):
    staff = auth_header(make_user('T1', role=User.ROLE_STAFF))
    student = auth_header(make_user('S1'))

    assert client.get('/api/users').status_code == 401
    assert client.get('/api/users', headers=staff).status_code == 403
    assert client.get('/api/users/pending', headers=student).get_json()['code'] == 'FORBIDDEN'


def test_pending_and_active_listings(client, admin_id, make_user, auth_header):
    make_user('S1', approved=False, department='CSE')
    make_user('S2', approved=False, department='Mechanical')
    make_user('S3', approved=True)
    headers = auth_header(admin_id)

    pending = client.get('/api/users/pending', headers=headers).get_json()['users']
    assert [u['rollNumber'] for u in pending] == ['S1', 'S2']

    filtered = client.get('/api/users/pending?department=mech', headers=headers).get_json()['users']
    assert [u['rollNumber'] for u in filtered] == ['S2']

    active = client.get('/api/users?role=student', headers=headers).get_json()['users']
    assert [u['rollNumber'] for u in active] == ['S3']


def test_approve_twice_is_idempotent(app, client, admin_id, make_user, auth_header):
    user_id = make_user('S1', approved=False)
    headers = auth_header(admin_id)

    first = client.post('/api/users/approve', json={'userIds': [user_id]}, headers=headers)
    second = client.post('/api/users/approve', json={'userIds': [user_id]}, headers=headers)

    assert first.status_code == 200
    assert first.get_json()['approvedCount'] == 1
    assert second.status_code == 200
    assert second.get_json()['approvedCount'] == 0
    with app.app_context():
        assert db.session.get(User, user_id).is_approved is True


def test_approve_unknown_ids_is_not_found(client, admin_id, auth_header):
    response = client.post('/api/users/approve', json={'userIds': [9999]}, headers=auth_header(admin_id))

    assert response.status_code == 404
    assert response.get_json()['code'] == 'NOT_FOUND'


def test_approve_requires_ids(client, admin_id, auth_header):
    response = client.post('/api/users/approve', json={'userIds': []}, headers=auth_header(admin_id))

    assert response.status_code == 400
    assert response.get_json()['code'] == 'VALIDATION_ERROR'


def test_delete_moves_account_to_retired(app, client, admin_id, make_user, auth_header):
    user_id = make_user('S1', department='Physics', section='B', batch='2022')

    response = client.delete(f'/api/users/{user_id}', headers=auth_header(admin_id))

    assert response.status_code == 200
    assert response.get_json()['deletedUser']['rollNumber'] == 'S1'
    with app.app_context():
        assert db.session.get(User, user_id) is None
        retired = RetiredUser.query.filter_by(roll_number='S1').one()
        assert retired.former_user_id == user_id
        assert retired.department == 'Physics'

    deleted = client.get('/api/deleted-users', headers=auth_header(admin_id)).get_json()['deletedUsers']
    assert [item['rollNumber'] for item in deleted] == ['S1']


def test_admin_cannot_delete_self(client, admin_id, auth_header):
    response = client.delete(f'/api/users/{admin_id}', headers=auth_header(admin_id))

    assert response.status_code == 400


def test_delete_then_restore_keeps_identity_with_new_credential(app, client, admin_id, make_user, auth_header):
    user_id = make_user('S1', password='original', department='Physics', section='B', batch='2022')
    headers = auth_header(admin_id)
    with app.app_context():
        old_hash = db.session.get(User, user_id).password_hash

    client.delete(f'/api/users/{user_id}', headers=headers)
    with app.app_context():
        retired_id = RetiredUser.query.filter_by(roll_number='S1').one().retired_id

    response = client.post(f'/api/users/restore/{retired_id}', headers=headers)

    assert response.status_code == 200
    with app.app_context():
        restored = User.query.filter_by(roll_number='S1').one()
        assert restored.is_approved is True
        assert (restored.department, restored.section, restored.batch) == ('Physics', 'B', '2022')
        assert restored.password_hash != old_hash
        assert not restored.check_password('original')
        assert RetiredUser.query.count() == 0


def test_restore_conflicts_when_roll_number_reused(client, admin_id, make_user, auth_header):
    headers = auth_header(admin_id)
    user_id = make_user('S1')
    client.delete(f'/api/users/{user_id}', headers=headers)
    retired_id = client.get('/api/deleted-users', headers=headers).get_json()['deletedUsers'][0]['id']
    make_user('S1')

    response = client.post(f'/api/users/restore/{retired_id}', headers=headers)

    assert response.status_code == 409


def test_permanent_delete_purges_snapshot(app, client, admin_id, make_user, auth_header):
    headers = auth_header(admin_id)
    client.delete(f"/api/users/{make_user('S1', name='Gone Soon')}", headers=headers)
    retired_id = client.get('/api/deleted-users', headers=headers).get_json()['deletedUsers'][0]['id']

    response = client.delete(f'/api/users/permanent/{retired_id}', headers=headers)

    assert response.status_code == 200
    assert response.get_json()['deletedUser'] == {'name': 'Gone Soon', 'rollNumber': 'S1'}
    with app.app_context():
        assert RetiredUser.query.count() == 0
    assert client.delete(f'/api/users/permanent/{retired_id}', headers=headers).status_code == 404


def test_batch_delete_reports_partial_failure(app, client, admin_id, make_user, auth_header):
    first = make_user('S1')
    second = make_user('S2')

    response = client.post(
        '/api/users/delete',
        json={'userIds': [first, 9999, second]},
        headers=auth_header(admin_id),
    )

    assert response.status_code == 400
    body = response.get_json()
    assert body['code'] == 'BATCH_PARTIAL_FAILURE'
    assert body['details']['succeeded'] == [first, second]
    assert [item['id'] for item in body['details']['failed']] == [9999]
    with app.app_context():
        assert RetiredUser.query.count() == 2


def test_batch_delete_success(client, admin_id, make_user, auth_header):
    ids = [make_user('S1'), make_user('S2')]

    response = client.post('/api/users/delete', json={'userIds': ids}, headers=auth_header(admin_id))

    assert response.status_code == 200
    assert response.get_json()['deletedCount'] == 2


def test_admin_password_reset(app, client, admin_id, make_user, auth_header):
    user_id = make_user('S1')

    response = client.put(
        f'/api/users/{user_id}/password',
        json={'newPassword': 'brand-new'},
        headers=auth_header(admin_id),
    )

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(User, user_id).check_password('brand-new')

    too_short = client.put(f'/api/users/{user_id}/password', json={'newPassword': 'x'},
                           headers=auth_header(admin_id))
    assert too_short.status_code == 400


def test_create_staff_account(app, client, admin_id, auth_header):
    payload = {'name': 'Dr. Rao', 'rollNumber': 'T100', 'password': 'teach1', 'department': 'Maths'}

    response = client.post('/api/users/staff', json=payload, headers=auth_header(admin_id))

    assert response.status_code == 201
    with app.app_context():
        staff = User.query.filter_by(roll_number='T100').one()
        assert staff.role == User.ROLE_STAFF
        assert staff.is_approved is True

    duplicate = client.post('/api/users/staff', json=payload, headers=auth_header(admin_id))
    assert duplicate.status_code == 409


def test_profile_update_reissues_token(app, client, make_user, auth_header):
    user_id = make_user('S1', name='Old Name')

    response = client.put(
        '/api/users/profile',
        json={'name': 'New Name', 'section': 'D'},
        headers=auth_header(user_id),
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body['user']['name'] == 'New Name'
    assert body['user']['section'] == 'D'
    assert body['token']

    validated = client.get('/api/validate', headers={'Authorization': f"Bearer {body['token']}"})
    assert validated.get_json()['user']['name'] == 'New Name'


def test_profile_update_without_changes_keeps_token(client, make_user, auth_header):
    user_id = make_user('S1', name='Same')

    response = client.put('/api/users/profile', json={'name': 'Same'}, headers=auth_header(user_id))

    assert response.status_code == 200
    assert 'token' not in response.get_json()


def test_profile_roll_number_conflict(client, make_user, auth_header):
    make_user('S1')
    user_id = make_user('S2')

    response = client.put('/api/users/profile', json={'rollNumber': 'S1'}, headers=auth_header(user_id))

    assert response.status_code == 409


def test_profile_password_change(app, client, make_user, auth_header):
    user_id = make_user('S1', password='before1')

    response = client.put('/api/users/profile', json={'newPassword': 'after12'}, headers=auth_header(user_id))

    assert response.status_code == 200
    assert response.get_json()['token']
    with app.app_context():
        assert db.session.get(User, user_id).check_password('after12')
