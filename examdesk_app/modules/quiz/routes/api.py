from io import BytesIO

from flask import jsonify, request, send_file
from flask_login import current_user, login_required

from examdesk_app.core.error_handlers import load_or_raise, success_response
from examdesk_app.modules.access_control import QUIZ_AUTHORS, STUDENTS_ONLY, require_roles
from examdesk_app.utils.time_utils import isoformat_utc, utcnow
from .. import quiz_bp as blueprint
from ..schemas import QuizCreateSchema
from ..services.quiz_service import QuizService


def _quiz_payload():
    """Quiz fields from either a JSON body or a multipart form."""
    if request.is_json:
        return request.get_json(silent=True) or {}, None
    payload = request.form.to_dict()
    payload['questions'] = QuizService.parse_questions_field(payload.get('questions'))
    return payload, request.files


@blueprint.route('/quizzes', methods=['POST'])
@login_required
@require_roles(*QUIZ_AUTHORS)
def create_quiz():
    payload, files = _quiz_payload()
    data = load_or_raise(QuizCreateSchema(), payload)
    quiz = QuizService.create_quiz(current_user, data, files)
    return jsonify(success_response('Quiz created successfully', quiz=quiz.to_dict())), 201


@blueprint.route('/quizzes', methods=['GET'])
@login_required
@require_roles(*QUIZ_AUTHORS)
def list_quizzes():
    quizzes = QuizService.list_quizzes(current_user)
    return jsonify(success_response(quizzes=[quiz.to_summary() for quiz in quizzes]))


@blueprint.route('/quizzes/available', methods=['GET'])
@login_required
@require_roles(*STUDENTS_ONLY)
def list_available_quizzes():
    now = utcnow()
    quizzes = QuizService.list_available(current_user, now=now)
    return jsonify(success_response(
        quizzes=[quiz.to_summary() for quiz in quizzes],
        serverTime=isoformat_utc(now),
    ))


@blueprint.route('/quizzes/<int:quiz_id>', methods=['GET'])
@login_required
def get_quiz(quiz_id):
    now = utcnow()
    quiz = QuizService.get_quiz_for(quiz_id, current_user, now=now)
    return jsonify(success_response(quiz=quiz, serverTime=isoformat_utc(now)))


@blueprint.route('/quizzes/<int:quiz_id>/questions/<int:question_id>/image', methods=['GET'])
def get_question_image(quiz_id, question_id):
    data, content_type = QuizService.get_question_image(quiz_id, question_id)
    return send_file(BytesIO(data), mimetype=content_type, max_age=3600)


@blueprint.route('/quizzes/<int:quiz_id>', methods=['DELETE'])
@login_required
@require_roles(*QUIZ_AUTHORS)
def delete_quiz(quiz_id):
    deleted = QuizService.delete_quiz(quiz_id, current_user)
    return jsonify(success_response('Quiz deleted successfully', quiz=deleted))
