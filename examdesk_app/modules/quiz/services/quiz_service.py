from typing import Any, Dict, List, Optional, Tuple

from flask import current_app

from examdesk_app.core.error_handlers import (
    AuthorizationError,
    NotFoundError,
    QuizWindowError,
    ValidationError,
)
from examdesk_app.core.extensions import db
from examdesk_app.core.signals import quiz_created, quiz_deleted
from examdesk_app.models import Quiz, QuizQuestion, QuizResult, User
from examdesk_app.modules.access_control.decorators import ensure_permission
from examdesk_app.modules.access_control.policies import CAN_AUTHOR_QUIZZES, CAN_VIEW_ALL_QUIZZES, has_permission
from examdesk_app.utils.time_utils import utcnow
from .image_service import ImageService


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _targets(quiz_value: Optional[str], caller_value: Optional[str]) -> bool:
    """A blank quiz target matches everyone; otherwise compare case-insensitively."""
    if not quiz_value:
        return True
    return (caller_value or '').strip().lower() == quiz_value.strip().lower()


class QuizService:
    """Authoring, listing and delivery of quizzes."""

    @staticmethod
    def create_quiz(author, data: Dict[str, Any], files=None) -> Quiz:
        """
        Persist a validated quiz payload with its questions in one transaction.

        `files` is the request's uploaded files; each bound image is read
        into the question row.
        """
        ensure_permission(author, CAN_AUTHOR_QUIZZES)
        questions: List[Dict[str, Any]] = data['questions']
        images = ImageService.bind_to_questions(files, len(questions)) if files else {}

        quiz = Quiz(
            title=data['title'].strip(),
            description=_blank_to_none(data.get('description')),
            start_time=data['start_time'],
            end_time=data['end_time'],
            duration_minutes=data['duration'],
            created_by=author.user_id,
            department=_blank_to_none(data.get('department')),
            batch=_blank_to_none(data.get('batch')),
        )
        for position, question in enumerate(questions):
            row = QuizQuestion(
                position=position,
                question_text=question['question_text'],
                options=list(question['options']),
                correct_answer=question['correct_answer'],
                points=question.get('points') or 1,
            )
            upload = images.get(position)
            if upload is not None:
                row.image_data, row.image_content_type = ImageService.persist(upload)
            quiz.questions.append(row)

        db.session.add(quiz)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            f"Quiz created: '{quiz.title}' ({quiz.quiz_id}) by {author.user_id} "
            f"with {len(questions)} question(s), {len(images)} image(s)"
        )
        quiz_created.send(current_app._get_current_object(), quiz=quiz)
        return quiz

    @staticmethod
    def list_quizzes(caller) -> List[Quiz]:
        """All quizzes for admins, own quizzes for staff. Newest first."""
        query = Quiz.query
        if not has_permission(caller, CAN_VIEW_ALL_QUIZZES):
            query = query.filter(Quiz.created_by == caller.user_id)
        return query.order_by(Quiz.created_at.desc(), Quiz.quiz_id.desc()).all()

    @staticmethod
    def list_available(caller, now=None) -> List[Quiz]:
        """
        Quizzes a student may start right now: window open, aimed at the
        student's department and batch, and not already submitted.
        """
        now = now or utcnow()
        taken = db.session.query(QuizResult.quiz_id).filter(QuizResult.user_id == caller.user_id)
        candidates = (
            Quiz.query
            .filter(Quiz.start_time <= now, Quiz.end_time >= now)
            .filter(~Quiz.quiz_id.in_(taken))
            .order_by(Quiz.start_time.asc(), Quiz.quiz_id.asc())
            .all()
        )
        return [
            quiz for quiz in candidates
            if _targets(quiz.department, caller.department) and _targets(quiz.batch, caller.batch)
        ]

    @staticmethod
    def get_quiz(quiz_id: int) -> Quiz:
        quiz = db.session.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundError('Quiz not found', resource='quiz')
        return quiz

    @classmethod
    def get_quiz_for(cls, quiz_id: int, caller, now=None) -> Dict[str, Any]:
        """
        Quiz as the caller may see it. Students never receive correct
        answers and are refused outside the scheduling window.
        """
        quiz = cls.get_quiz(quiz_id)
        if caller.role != User.ROLE_STUDENT:
            return quiz.to_dict(include_answers=True)

        state = quiz.window_state(now or utcnow())
        if state == 'not_started':
            raise QuizWindowError(QuizWindowError.NOT_STARTED)
        if state == 'ended':
            raise QuizWindowError(QuizWindowError.ENDED)
        return quiz.to_dict(include_answers=False)

    @staticmethod
    def get_question_image(quiz_id: int, question_id: int) -> Tuple[bytes, str]:
        question = QuizQuestion.query.filter_by(quiz_id=quiz_id, question_id=question_id).first()
        if question is None or not question.image_data:
            raise NotFoundError('Image not found', resource='question_image')
        return question.image_data, question.image_content_type or 'application/octet-stream'

    @classmethod
    def delete_quiz(cls, quiz_id: int, caller) -> Dict[str, Any]:
        """Hard-delete a quiz and its questions. Stored results are kept."""
        quiz = cls.get_quiz(quiz_id)
        if not has_permission(caller, CAN_VIEW_ALL_QUIZZES) and quiz.created_by != caller.user_id:
            raise AuthorizationError('You can only delete quizzes you created')

        title = quiz.title
        db.session.delete(quiz)
        db.session.commit()

        current_app.logger.info(f"Quiz deleted: '{title}' ({quiz_id}) by {caller.user_id}")
        quiz_deleted.send(current_app._get_current_object(), quiz_id=quiz_id, title=title,
                          deleted_by=caller.user_id)
        return {'id': quiz_id, 'title': title}

    @staticmethod
    def parse_questions_field(raw) -> Any:
        """Multipart forms carry the question list as a JSON string."""
        if raw is None or isinstance(raw, list):
            return raw
        try:
            return current_app.json.loads(raw)
        except ValueError as exc:
            raise ValidationError('Questions must be a JSON array', errors={'questions': [str(exc)]}) from exc
