from examdesk_app import db
from examdesk_app.models import User


def register(client, **overrides):
    payload = {
        'name': 'Student One',
        'rollNumber': 'S100',
        'password': 'secret1',
        'department': 'CSE',
        'section': 'A',
        'batch': '2024',
    }
    payload.update(overrides)
    return client.post('/api/register', json=payload)


def login(client, roll_number, password):
    return client.post('/api/login', json={'rollNumber': roll_number, 'password': password})


def test_register_creates_pending_student(app, client):
    response = register(client)

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['user']['rollNumber'] == 'S100'
    assert body['user']['role'] == 'student'

    with app.app_context():
        user = User.query.filter_by(roll_number='S100').first()
        assert user.is_approved is False
        assert user.password_hash != 'secret1'


def test_duplicate_roll_number_conflicts(client):
    assert register(client).status_code == 201

    response = register(client, name='Someone Else')

    assert response.status_code == 409
    assert response.get_json()['code'] == 'CONFLICT'


def test_unapproved_login_is_pending(client):
    register(client)

    response = login(client, 'S100', 'secret1')

    assert response.status_code == 403
    assert response.get_json()['code'] == 'PENDING_APPROVAL'


def test_pending_state_hidden_behind_wrong_password(client):
    register(client)

    response = login(client, 'S100', 'wrong-password')

    assert response.status_code == 401
    assert response.get_json()['code'] == 'INVALID_CREDENTIALS'


def test_unknown_roll_number_is_invalid_credentials(client):
    response = login(client, 'nobody', 'whatever')

    assert response.status_code == 401
    assert response.get_json()['code'] == 'INVALID_CREDENTIALS'


def test_student_registration_requires_batch(client):
    response = register(client, batch='')

    assert response.status_code == 400
    body = response.get_json()
    assert body['code'] == 'VALIDATION_ERROR'
    assert 'batch' in body['details']['errors']


def test_registration_rejects_short_password(client):
    response = register(client, password='123')

    assert response.status_code == 400
    assert response.get_json()['code'] == 'VALIDATION_ERROR'


def test_staff_registration_drops_section_and_batch(app, client):
    response = register(client, rollNumber='T1', role='staff', section='B', batch='2020')

    assert response.status_code == 201
    with app.app_context():
        staff = User.query.filter_by(roll_number='T1').first()
        assert staff.section is None
        assert staff.batch is None
        assert staff.is_approved is False


def test_default_admin_can_login_and_validate(client):
    response = login(client, 'admin', 'admin123')

    assert response.status_code == 200
    body = response.get_json()
    assert body['user']['role'] == 'admin'
    token = body['token']

    validated = client.get('/api/validate', headers={'Authorization': f'Bearer {token}'})
    assert validated.status_code == 200
    assert validated.get_json()['user']['rollNumber'] == 'admin'


def test_approved_login_returns_claims(client, make_user):
    make_user('S200', name='Asha', department='ECE', section='C', batch='2023')

    body = login(client, 'S200', 'secret1').get_json()

    assert body['success'] is True
    assert body['user']['name'] == 'Asha'
    assert body['user']['department'] == 'ECE'
    assert body['user']['section'] == 'C'
    assert body['user']['batch'] == '2023'
    assert '_id' in body['user']


def test_validate_without_token(client):
    response = client.get('/api/validate')

    assert response.status_code == 401
    body = response.get_json()
    assert body['code'] == 'AUTHENTICATION_ERROR'
    assert body['message'] == 'Access denied. No token provided.'


def test_validate_with_tampered_token(client, make_user, auth_header):
    user_id = make_user('S300')
    header = auth_header(user_id)
    header['Authorization'] = header['Authorization'][:-2] + 'xx'

    response = client.get('/api/validate', headers=header)

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid token'


def test_validate_with_expired_token(app, client, make_user, auth_header):
    header = auth_header(make_user('S400'))
    app.config['TOKEN_MAX_AGE_SECONDS'] = -1

    response = client.get('/api/validate', headers=header)

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Session expired. Please login again.'


def test_tokens_identify_their_own_caller(client, make_user, auth_header):
    first = auth_header(make_user('S501'))
    second = auth_header(make_user('S502'))

    assert client.get('/api/validate', headers=first).get_json()['user']['rollNumber'] == 'S501'
    assert client.get('/api/validate', headers=second).get_json()['user']['rollNumber'] == 'S502'


def test_password_is_hashed_with_werkzeug(app, make_user):
    user_id = make_user('S600', password='topsecret')
    with app.app_context():
        user = db.session.get(User, user_id)
        assert user.check_password('topsecret')
        assert not user.check_password('TopSecret')
