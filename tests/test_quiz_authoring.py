"""
Tests for quiz authoring and delivery

Tests cover:
- Multipart creation with explicit and positional image binding
- Validation of question payloads and scheduling windows
- Listing scope per role, available quizzes for students
- Answer confidentiality and window refusal for students
"""
import io
import json
import os
from datetime import timedelta

from examdesk_app import db
from examdesk_app.models import Quiz, QuizQuestion, QuizResult, User
from examdesk_app.utils.time_utils import isoformat_utc, utcnow

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32


def quiz_form(**overrides):
    now = utcnow()
    form = {
        'title': 'Unit Test Quiz',
        'description': 'Chapter 1',
        'startTime': isoformat_utc(now - timedelta(minutes=5)),
        'endTime': isoformat_utc(now + timedelta(hours=1)),
        'duration': '20',
        'questions': json.dumps([
            {'questionText': 'Pick a', 'options': ['a', 'b'], 'correctAnswer': 0},
            {'questionText': 'Pick b', 'options': ['a', 'b', 'c'], 'correctAnswer': 1, 'points': 3},
        ]),
    }
    form.update(overrides)
    return form


def temp_files(app):
    folder = app.config['UPLOAD_TEMP_FOLDER']
    return os.listdir(folder) if os.path.isdir(folder) else []


def test_staff_creates_quiz_with_explicit_image(app, client, make_user, auth_header):
    staff_id = make_user('T1', role=User.ROLE_STAFF)
    form = quiz_form()
    form['questionImage_1'] = (io.BytesIO(PNG_BYTES), 'diagram.png')

    response = client.post('/api/quizzes', data=form, headers=auth_header(staff_id),
                           content_type='multipart/form-data')

    assert response.status_code == 201
    quiz = response.get_json()['quiz']
    assert quiz['duration'] == 20
    assert quiz['createdBy']['id'] == staff_id
    assert [q['hasImage'] for q in quiz['questions']] == [False, True]
    assert quiz['questions'][1]['points'] == 3
    assert quiz['questions'][0]['points'] == 1
    assert temp_files(app) == []

    image = client.get(quiz['questions'][1]['imageUrl'])
    assert image.status_code == 200
    assert image.mimetype == 'image/png'
    assert image.data == PNG_BYTES


def test_positional_images_bind_in_order(app, client, make_user, auth_header):
    staff_id = make_user('T1', role=User.ROLE_STAFF)
    form = quiz_form()
    form['questionImages'] = [(io.BytesIO(PNG_BYTES), 'one.png'), (io.BytesIO(b'GIF89a-data'), 'two.gif')]

    response = client.post('/api/quizzes', data=form, headers=auth_header(staff_id),
                           content_type='multipart/form-data')

    assert response.status_code == 201
    quiz_id = response.get_json()['quiz']['id']
    with app.app_context():
        questions = QuizQuestion.query.filter_by(quiz_id=quiz_id).order_by(QuizQuestion.position).all()
        assert questions[0].image_data == PNG_BYTES
        assert questions[1].image_content_type == 'image/gif'
    assert temp_files(app) == []


def test_non_image_upload_is_rejected(app, client, make_user, auth_header):
    staff_id = make_user('T1', role=User.ROLE_STAFF)
    form = quiz_form()
    form['questionImage_0'] = (io.BytesIO(b'plain text'), 'notes.txt')

    response = client.post('/api/quizzes', data=form, headers=auth_header(staff_id),
                           content_type='multipart/form-data')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Error: Images only!'
    with app.app_context():
        assert Quiz.query.count() == 0
    assert temp_files(app) == []


def test_json_body_creation(client, admin_id, auth_header):
    form = quiz_form()
    payload = dict(form, questions=json.loads(form['questions']), duration=15)

    response = client.post('/api/quizzes', json=payload, headers=auth_header(admin_id))

    assert response.status_code == 201
    assert len(response.get_json()['quiz']['questions']) == 2


def test_question_validation(client, admin_id, auth_header):
    headers = auth_header(admin_id)
    bad_answer = quiz_form(questions=json.dumps([
        {'questionText': 'Q', 'options': ['a', 'b'], 'correctAnswer': 5},
    ]))
    no_questions = quiz_form(questions='[]')
    missing_text = quiz_form(questions=json.dumps([{'options': ['a', 'b'], 'correctAnswer': 0}]))
    not_json = quiz_form(questions='{oops')

    for form in (bad_answer, no_questions, missing_text, not_json):
        response = client.post('/api/quizzes', data=form, headers=headers)
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'


def test_window_must_be_ordered(client, admin_id, auth_header):
    now = utcnow()
    form = quiz_form(startTime=isoformat_utc(now), endTime=isoformat_utc(now - timedelta(hours=1)))

    response = client.post('/api/quizzes', data=form, headers=auth_header(admin_id))

    assert response.status_code == 400
    assert 'endTime' in response.get_json()['details']['errors']


def test_offset_timestamps_stored_as_utc(app, client, admin_id, auth_header):
    form = quiz_form(startTime='2030-01-01T10:00:00+05:30', endTime='2030-01-01T12:00:00+05:30')

    response = client.post('/api/quizzes', data=form, headers=auth_header(admin_id))

    assert response.status_code == 201
    assert response.get_json()['quiz']['startTime'] == '2030-01-01T04:30:00.000Z'


def test_students_cannot_author(client, make_user, auth_header):
    response = client.post('/api/quizzes', data=quiz_form(), headers=auth_header(make_user('S1')))

    assert response.status_code == 403


def test_listing_scope(client, admin_id, make_user, make_quiz, auth_header):
    mine = make_user('T1', role=User.ROLE_STAFF)
    other = make_user('T2', role=User.ROLE_STAFF)
    first = make_quiz(mine, title='First')
    make_quiz(other, title='Other')
    second = make_quiz(mine, title='Second')

    staff_view = client.get('/api/quizzes', headers=auth_header(mine)).get_json()['quizzes']
    assert [q['id'] for q in staff_view] == [second, first]
    assert 'questions' not in staff_view[0]
    assert staff_view[0]['questionCount'] == 2

    admin_view = client.get('/api/quizzes', headers=auth_header(admin_id)).get_json()['quizzes']
    assert len(admin_view) == 3


def test_student_fetch_strips_answers(client, make_user, make_quiz, auth_header):
    staff_id = make_user('T1', role=User.ROLE_STAFF)
    quiz_id = make_quiz(staff_id)

    as_student = client.get(f'/api/quizzes/{quiz_id}', headers=auth_header(make_user('S1'))).get_json()
    as_staff = client.get(f'/api/quizzes/{quiz_id}', headers=auth_header(staff_id)).get_json()

    assert all('correctAnswer' not in q for q in as_student['quiz']['questions'])
    assert [q['correctAnswer'] for q in as_staff['quiz']['questions']] == [0, 1]
    assert as_student['serverTime'].endswith('Z')


def test_student_refused_outside_window(client, make_user, make_quiz, auth_header):
    staff_id = make_user('T1', role=User.ROLE_STAFF)
    upcoming = make_quiz(staff_id, starts_in=timedelta(hours=1), ends_in=timedelta(hours=2))
    finished = make_quiz(staff_id, starts_in=timedelta(hours=-2), ends_in=timedelta(hours=-1))
    headers = auth_header(make_user('S1'))

    not_started = client.get(f'/api/quizzes/{upcoming}', headers=headers)
    ended = client.get(f'/api/quizzes/{finished}', headers=headers)

    assert not_started.status_code == 400
    assert not_started.get_json()['code'] == 'QUIZ_NOT_STARTED'
    assert ended.get_json()['code'] == 'QUIZ_ENDED'
    assert client.get(f'/api/quizzes/{upcoming}', headers=auth_header(staff_id)).status_code == 200


def test_available_quizzes_respect_window_targeting_and_attempts(app, client, make_user, make_quiz, auth_header):
    staff_id = make_user('T1', role=User.ROLE_STAFF)
    student_id = make_user('S1', department='CSE', batch='2024')
    open_for_all = make_quiz(staff_id, title='Open')
    targeted = make_quiz(staff_id, title='CSE only', department='cse', batch='2024')
    make_quiz(staff_id, title='ECE only', department='ECE')
    make_quiz(staff_id, title='Later', starts_in=timedelta(hours=1), ends_in=timedelta(hours=2))
    taken = make_quiz(staff_id, title='Taken')
    with app.app_context():
        db.session.add(QuizResult(quiz_id=taken, user_id=student_id, answers=[0, 1], score=3))
        db.session.commit()

    body = client.get('/api/quizzes/available', headers=auth_header(student_id)).get_json()

    assert sorted(q['id'] for q in body['quizzes']) == sorted([open_for_all, targeted])
    assert all('questions' not in q for q in body['quizzes'])
    assert body['serverTime'].endswith('Z')


def test_available_is_student_only(client, make_user, auth_header):
    staff_id = make_user('T1', role=User.ROLE_STAFF)

    assert client.get('/api/quizzes/available', headers=auth_header(staff_id)).status_code == 403


def test_missing_image_is_not_found(client, admin_id, make_quiz, app):
    quiz_id = make_quiz(admin_id)
    with app.app_context():
        question_id = QuizQuestion.query.filter_by(quiz_id=quiz_id).first().question_id

    response = client.get(f'/api/quizzes/{quiz_id}/questions/{question_id}/image')

    assert response.status_code == 404
    assert response.get_json()['code'] == 'NOT_FOUND'


def test_delete_quiz_ownership(app, client, admin_id, make_user, make_quiz, auth_header):
    owner = make_user('T1', role=User.ROLE_STAFF)
    intruder = make_user('T2', role=User.ROLE_STAFF)
    quiz_id = make_quiz(owner)

    assert client.delete(f'/api/quizzes/{quiz_id}', headers=auth_header(intruder)).status_code == 403

    response = client.delete(f'/api/quizzes/{quiz_id}', headers=auth_header(owner))
    assert response.status_code == 200
    assert response.get_json()['quiz']['id'] == quiz_id
    with app.app_context():
        assert db.session.get(Quiz, quiz_id) is None
        assert QuizQuestion.query.filter_by(quiz_id=quiz_id).count() == 0

    assert client.delete(f'/api/quizzes/{quiz_id}', headers=auth_header(admin_id)).status_code == 404


def test_unknown_api_route_is_json(client):
    response = client.get('/api/does-not-exist')

    assert response.status_code == 404
    assert response.get_json()['success'] is False
