"""Quiz authoring models."""

from __future__ import annotations

from sqlalchemy.types import JSON

from ..core.extensions import db
from ..utils.time_utils import isoformat_utc, utcnow


class Quiz(db.Model):
    """An authored assessment with a scheduling window and ordered questions."""

    __tablename__ = 'quizzes'
    # Results keep bare quiz ids, so a deleted quiz's id must never be handed out again.
    __table_args__ = {'sqlite_autoincrement': True}

    quiz_id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)
    department = db.Column(db.String(120))
    batch = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    questions = db.relationship(
        'QuizQuestion',
        backref='quiz',
        order_by='QuizQuestion.position',
        cascade='all, delete-orphan',
        lazy=True,
    )
    author = db.relationship('User', lazy=True)

    def window_state(self, now) -> str:
        """'not_started', 'open' or 'ended' for the instant `now` (naive UTC)."""
        if now < self.start_time:
            return 'not_started'
        if now > self.end_time:
            return 'ended'
        return 'open'

    @property
    def max_score(self) -> int:
        return sum(question.points or 1 for question in self.questions)

    def to_summary(self) -> dict[str, object]:
        """Listing form: everything but the questions themselves."""
        data = self.to_dict(include_answers=False)
        data.pop('questions')
        data['questionCount'] = len(self.questions)
        data['maxScore'] = self.max_score
        return data

    def to_dict(self, include_answers: bool = True) -> dict[str, object]:
        return {
            'id': self.quiz_id,
            'title': self.title,
            'description': self.description,
            'startTime': isoformat_utc(self.start_time),
            'endTime': isoformat_utc(self.end_time),
            'duration': self.duration_minutes,
            'createdBy': {
                'id': self.created_by,
                'name': self.author.name if self.author else None,
            },
            'department': self.department,
            'batch': self.batch,
            'createdAt': isoformat_utc(self.created_at),
            'questions': [q.to_dict(include_answer=include_answers) for q in self.questions],
        }


class QuizQuestion(db.Model):
    """Multiple-choice question owned by a quiz, kept in authoring order."""

    __tablename__ = 'quiz_questions'

    question_id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quizzes.quiz_id', ondelete='CASCADE'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    question_text = db.Column(db.Text, nullable=False)
    options = db.Column(JSON, nullable=False)
    correct_answer = db.Column(db.Integer, nullable=False)
    points = db.Column(db.Integer, default=1, nullable=False)
    image_data = db.Column(db.LargeBinary)
    image_content_type = db.Column(db.String(100))

    __table_args__ = (db.UniqueConstraint('quiz_id', 'position', name='_quiz_question_position_uc'),)

    @property
    def has_image(self) -> bool:
        return bool(self.image_data)

    def to_dict(self, include_answer: bool = True) -> dict[str, object]:
        data = {
            'id': self.question_id,
            'questionText': self.question_text,
            'options': list(self.options or []),
            'points': self.points,
            'hasImage': self.has_image,
            'imageUrl': (
                f'/api/quizzes/{self.quiz_id}/questions/{self.question_id}/image'
                if self.has_image else None
            ),
        }
        if include_answer:
            data['correctAnswer'] = self.correct_answer
        return data
