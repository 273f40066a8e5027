from datetime import timedelta

import pytest

from examdesk_app import create_app, db
from examdesk_app.core.config import Config
from examdesk_app.models import Quiz, QuizQuestion, User
from examdesk_app.modules.auth.tokens import issue_token
from examdesk_app.utils.time_utils import utcnow


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    LOG_LEVEL = 'WARNING'
    LOG_TO_FILE = False
    DEFAULT_ADMIN_ROLL_NUMBER = 'admin'
    DEFAULT_ADMIN_PASSWORD = 'admin123'


DEFAULT_QUESTIONS = [
    {'questionText': 'First?', 'options': ['a', 'b', 'c'], 'correctAnswer': 0, 'points': 1},
    {'questionText': 'Second?', 'options': ['a', 'b'], 'correctAnswer': 1, 'points': 2},
]


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig)
    app.config['UPLOAD_TEMP_FOLDER'] = str(tmp_path / 'uploads')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_id(app):
    with app.app_context():
        return User.query.filter_by(roll_number='admin').first().user_id


@pytest.fixture
def make_user(app):
    def _make_user(roll_number, role=User.ROLE_STUDENT, approved=True, password='secret1',
                   name=None, department='CSE', section='A', batch='2024'):
        with app.app_context():
            user = User(
                roll_number=roll_number,
                name=name or f'User {roll_number}',
                role=role,
                department=department,
                section=None if role == User.ROLE_STAFF else section,
                batch=None if role == User.ROLE_STAFF else batch,
                is_approved=approved,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.user_id
    return _make_user


@pytest.fixture
def auth_header(app):
    def _auth_header(user_id):
        with app.app_context():
            user = db.session.get(User, user_id)
            token = issue_token(user.claims())
        return {'Authorization': f'Bearer {token}'}
    return _auth_header


@pytest.fixture
def make_quiz(app):
    def _make_quiz(author_id, questions=None, starts_in=timedelta(minutes=-10), ends_in=timedelta(minutes=50),
                   duration=30, title='Midterm', department=None, batch=None):
        now = utcnow()
        with app.app_context():
            quiz = Quiz(
                title=title,
                start_time=now + starts_in,
                end_time=now + ends_in,
                duration_minutes=duration,
                created_by=author_id,
                department=department,
                batch=batch,
            )
            for position, question in enumerate(questions or DEFAULT_QUESTIONS):
                quiz.questions.append(QuizQuestion(
                    position=position,
                    question_text=question['questionText'],
                    options=question['options'],
                    correct_answer=question['correctAnswer'],
                    points=question.get('points', 1),
                ))
            db.session.add(quiz)
            db.session.commit()
            return quiz.quiz_id
    return _make_quiz
