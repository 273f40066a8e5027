from typing import Any, Dict, List, Optional, Sequence, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from examdesk_app.core.error_handlers import (
    AlreadySubmitted,
    AuthorizationError,
    NotFoundError,
    QuizWindowError,
    TooEarly,
)
from examdesk_app.core.extensions import db
from examdesk_app.core.signals import result_submitted
from examdesk_app.models import Quiz, QuizResult, User
from examdesk_app.modules.access_control.decorators import ensure_permission
from examdesk_app.modules.access_control.policies import (
    CAN_EXPORT_RESULTS,
    CAN_TAKE_QUIZZES,
    CAN_VIEW_ALL_QUIZZES,
    has_permission,
)
from examdesk_app.utils.time_utils import utcnow
from ..engine.excel_exporter import ResultExcelExporter
from ..logics.calculator import ScoreCalculator


class ResultService:
    """Submission, grading and retrieval of quiz results."""

    @staticmethod
    def _quiz_or_404(quiz_id: int) -> Quiz:
        quiz = db.session.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundError('Quiz not found', resource='quiz')
        return quiz

    @staticmethod
    def _ensure_author_or_admin(quiz: Quiz, caller) -> None:
        if has_permission(caller, CAN_VIEW_ALL_QUIZZES):
            return
        if quiz.created_by != caller.user_id:
            raise AuthorizationError('Not authorized')

    @staticmethod
    def existing_result(quiz_id: int, user_id: int) -> Optional[QuizResult]:
        return QuizResult.query.filter_by(quiz_id=quiz_id, user_id=user_id).first()

    @classmethod
    def submit_result(
        cls,
        quiz_id: int,
        caller,
        answers: Sequence[Any],
        violations: int = 0,
        now=None,
    ) -> QuizResult:
        """
        Grade and store the caller's one submission for a quiz.

        The window is checked against the server clock. A second submission
        for the same (quiz, account) pair fails with AlreadySubmitted, whether
        it is caught by the lookup or by the unique constraint.
        """
        ensure_permission(caller, CAN_TAKE_QUIZZES)
        quiz = cls._quiz_or_404(quiz_id)

        state = quiz.window_state(now or utcnow())
        if state == 'not_started':
            raise QuizWindowError(QuizWindowError.NOT_STARTED)
        if state == 'ended':
            raise QuizWindowError(QuizWindowError.ENDED)

        if cls.existing_result(quiz_id, caller.user_id) is not None:
            raise AlreadySubmitted()

        result = QuizResult(
            quiz_id=quiz_id,
            user_id=caller.user_id,
            answers=list(answers),
            score=ScoreCalculator.calculate(quiz.questions, answers),
            violations=violations or 0,
            submitted_at=utcnow(),
        )
        db.session.add(result)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info(f"Duplicate submission race for quiz {quiz_id} by {caller.user_id}")
            raise AlreadySubmitted()

        current_app.logger.info(
            f"Result submitted: quiz {quiz_id} by {caller.user_id}, "
            f"score {result.score}/{quiz.max_score}, violations {result.violations}"
        )
        result_submitted.send(current_app._get_current_object(), result=result)
        return result

    @staticmethod
    def list_results(caller) -> List[QuizResult]:
        """Own results for students, authored quizzes' results for staff, all for admins."""
        query = QuizResult.query
        if caller.role == User.ROLE_STUDENT:
            query = query.filter(QuizResult.user_id == caller.user_id)
        elif not has_permission(caller, CAN_VIEW_ALL_QUIZZES):
            authored = db.session.query(Quiz.quiz_id).filter(Quiz.created_by == caller.user_id)
            query = query.filter(QuizResult.quiz_id.in_(authored))
        return query.order_by(QuizResult.submitted_at.desc(), QuizResult.result_id.desc()).all()

    @staticmethod
    def get_result_details(result_id: int, caller, now=None) -> Dict[str, Any]:
        """
        A result together with the answer key. Only the owner may read it,
        and only once the quiz window has closed.
        """
        result = db.session.get(QuizResult, result_id)
        if result is None:
            raise NotFoundError('Result not found', resource='result')
        if result.user_id != caller.user_id:
            raise AuthorizationError('Not authorized to view this result')

        quiz = result.quiz
        if quiz is not None and (now or utcnow()) < quiz.end_time:
            raise TooEarly()

        details = result.to_dict()
        if quiz is not None:
            details['quiz'] = {**quiz.to_dict(include_answers=True), 'maxScore': quiz.max_score}
        else:
            details['quiz']['questions'] = []
        return details

    @classmethod
    def results_for_quiz(cls, quiz_id: int, caller) -> Tuple[Quiz, List[QuizResult]]:
        quiz = cls._quiz_or_404(quiz_id)
        cls._ensure_author_or_admin(quiz, caller)
        results = (
            QuizResult.query
            .filter_by(quiz_id=quiz_id)
            .order_by(QuizResult.submitted_at.asc(), QuizResult.result_id.asc())
            .all()
        )
        return quiz, results

    @classmethod
    def export_results(cls, quiz_id: int, caller, exporter=None):
        """Returns (buffer, filename) of the quiz's results spreadsheet."""
        ensure_permission(caller, CAN_EXPORT_RESULTS)
        quiz, results = cls.results_for_quiz(quiz_id, caller)
        buffer, filename = (exporter or ResultExcelExporter).export_quiz_results(quiz, results)
        current_app.logger.info(f"Exported {len(results)} result(s) of quiz {quiz_id} for {caller.user_id}")
        return buffer, filename

