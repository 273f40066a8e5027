"""Scored quiz submissions."""

from __future__ import annotations

from sqlalchemy.types import JSON

from ..core.extensions import db
from ..utils.time_utils import isoformat_utc, utcnow


class QuizResult(db.Model):
    """The single permitted scored submission of a quiz by an account."""

    __tablename__ = 'quiz_results'

    result_id = db.Column(db.Integer, primary_key=True)
    # No foreign keys: results outlive deleted quizzes and retired accounts.
    quiz_id = db.Column(db.Integer, nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    answers = db.Column(JSON, nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    violations = db.Column(db.Integer, default=0, nullable=False)
    submitted_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    quiz = db.relationship(
        'Quiz',
        primaryjoin='foreign(QuizResult.quiz_id) == Quiz.quiz_id',
        viewonly=True,
        lazy=True,
    )
    user = db.relationship(
        'User',
        primaryjoin='foreign(QuizResult.user_id) == User.user_id',
        viewonly=True,
        lazy=True,
    )

    __table_args__ = (db.UniqueConstraint('quiz_id', 'user_id', name='_quiz_user_result_uc'),)

    UNKNOWN_QUIZ_TITLE = 'Unknown Quiz'

    def to_dict(self, include_user: bool = False) -> dict[str, object]:
        quiz = self.quiz
        data = {
            'id': self.result_id,
            'quiz': {
                'id': self.quiz_id,
                'title': quiz.title if quiz else self.UNKNOWN_QUIZ_TITLE,
                'endTime': isoformat_utc(quiz.end_time) if quiz else None,
                'maxScore': quiz.max_score if quiz else None,
            },
            'answers': list(self.answers or []),
            'score': self.score,
            'violations': self.violations,
            'submittedAt': isoformat_utc(self.submitted_at),
        }
        if include_user:
            user = self.user
            data['user'] = {
                'id': self.user_id,
                'rollNumber': user.roll_number if user else None,
                'name': user.name if user else None,
                'department': user.department if user else None,
                'section': user.section if user else None,
                'batch': user.batch if user else None,
            }
        return data
