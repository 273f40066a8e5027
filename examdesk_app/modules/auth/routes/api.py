# File: examdesk_app/modules/auth/routes/api.py
from flask import request, jsonify
from flask_login import current_user, login_required

from examdesk_app.core.error_handlers import load_or_raise, success_response
from .. import auth_bp as blueprint
from ..schemas import LoginSchema, RegisterSchema
from ..services.auth_service import AuthService


@blueprint.route('/register', methods=['POST'])
def register():
    data = load_or_raise(RegisterSchema(), request.get_json(silent=True))
    user = AuthService.register_user(data)
    message = 'User registered successfully. ' + (
        'Admin account created.' if user.is_approved else 'Waiting for admin approval.'
    )
    return jsonify(success_response(
        message,
        user={
            'id': user.user_id,
            'name': user.name,
            'rollNumber': user.roll_number,
            'role': user.role,
        },
    )), 201


@blueprint.route('/login', methods=['POST'])
def login():
    data = load_or_raise(LoginSchema(), request.get_json(silent=True))
    user, token = AuthService.login(data['roll_number'], data['password'])
    return jsonify(success_response(
        token=token,
        user={
            '_id': user.user_id,
            'rollNumber': user.roll_number,
            'name': user.name,
            'role': user.role,
            'department': user.department,
            'section': user.section,
            'batch': user.batch,
        },
    ))


@blueprint.route('/validate', methods=['GET'])
@login_required
def validate():
    return jsonify(success_response(user=current_user.to_dict()))
