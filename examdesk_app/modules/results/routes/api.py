from flask import jsonify, request, send_file
from flask_login import current_user, login_required

from examdesk_app.core.error_handlers import load_or_raise, success_response
from examdesk_app.modules.access_control import QUIZ_AUTHORS, STUDENTS_ONLY, require_permission, require_roles
from examdesk_app.modules.access_control.policies import CAN_TAKE_QUIZZES
from .. import results_bp as blueprint
from ..schemas import ResultSubmitSchema
from ..services.result_service import ResultService

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


@blueprint.route('/results', methods=['POST'])
@login_required
@require_permission(CAN_TAKE_QUIZZES)
def submit_result():
    data = load_or_raise(ResultSubmitSchema(), request.get_json(silent=True))
    result = ResultService.submit_result(
        data['quiz_id'],
        current_user,
        data['answers'],
        violations=data['violations'],
    )
    return jsonify(success_response('Quiz submitted successfully', result=result.to_dict())), 201


@blueprint.route('/results', methods=['GET'])
@login_required
def list_results():
    results = ResultService.list_results(current_user)
    include_user = current_user.role != 'student'
    return jsonify(success_response(results=[r.to_dict(include_user=include_user) for r in results]))


@blueprint.route('/results/<int:result_id>/details', methods=['GET'])
@login_required
@require_roles(*STUDENTS_ONLY)
def get_result_details(result_id):
    details = ResultService.get_result_details(result_id, current_user)
    return jsonify(success_response(result=details))


@blueprint.route('/quizzes/<int:quiz_id>/results', methods=['GET'])
@login_required
@require_roles(*QUIZ_AUTHORS)
def list_quiz_results(quiz_id):
    quiz, results = ResultService.results_for_quiz(quiz_id, current_user)
    return jsonify(success_response(
        quiz=quiz.to_summary(),
        results=[result.to_dict(include_user=True) for result in results],
    ))


@blueprint.route('/quizzes/<int:quiz_id>/results/export', methods=['GET'])
@login_required
@require_roles(*QUIZ_AUTHORS)
def export_quiz_results(quiz_id):
    buffer, filename = ResultService.export_results(quiz_id, current_user)
    return send_file(buffer, mimetype=XLSX_MIMETYPE, as_attachment=True, download_name=filename)
