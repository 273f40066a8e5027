from flask import request, jsonify
from flask_login import current_user, login_required

from examdesk_app.core.error_handlers import load_or_raise, success_response
from examdesk_app.modules.access_control import require_permission
from examdesk_app.modules.access_control.policies import CAN_MANAGE_USERS
from .. import user_management_bp as blueprint
from ..schemas import (
    PasswordResetSchema,
    ProfileUpdateSchema,
    StaffAccountSchema,
    UserFilterSchema,
    UserIdListSchema,
)
from ..services.user_service import UserService


def _filters():
    return load_or_raise(UserFilterSchema(), request.args.to_dict())


@blueprint.route('/users/pending', methods=['GET'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def list_pending_users():
    users = UserService.list_pending(_filters())
    return jsonify(success_response(users=[user.to_dict() for user in users]))


@blueprint.route('/users', methods=['GET'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def list_active_users():
    users = UserService.list_active(_filters())
    return jsonify(success_response(users=[user.to_dict() for user in users]))


@blueprint.route('/deleted-users', methods=['GET'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def list_deleted_users():
    retired = UserService.list_retired(_filters())
    return jsonify(success_response(deletedUsers=[item.to_dict() for item in retired]))


@blueprint.route('/users/approve', methods=['POST'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def approve_users():
    data = load_or_raise(UserIdListSchema(), request.get_json(silent=True))
    approved = UserService.approve_users(data['user_ids'])
    return jsonify(success_response(f'{approved} user(s) approved successfully', approvedCount=approved))


@blueprint.route('/users/<int:user_id>', methods=['DELETE'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def delete_user(user_id):
    retired = UserService.retire_user(user_id, acting_user_id=current_user.user_id)
    return jsonify(success_response(
        'User deleted successfully',
        deletedUser={'name': retired.name, 'rollNumber': retired.roll_number},
    ))


@blueprint.route('/users/delete', methods=['POST'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def delete_users():
    data = load_or_raise(UserIdListSchema(), request.get_json(silent=True))
    retired = UserService.retire_users(data['user_ids'], acting_user_id=current_user.user_id)
    return jsonify(success_response(
        f'{len(retired)} user(s) deleted successfully',
        deletedCount=len(retired),
        deletedUsers=[{'name': item.name, 'rollNumber': item.roll_number} for item in retired],
    ))


@blueprint.route('/users/permanent/<int:retired_id>', methods=['DELETE'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def permanently_delete_user(retired_id):
    snapshot = UserService.purge_retired(retired_id)
    return jsonify(success_response(
        'User permanently deleted',
        deletedUser={'name': snapshot['name'], 'rollNumber': snapshot['rollNumber']},
    ))


@blueprint.route('/users/restore/<int:retired_id>', methods=['POST'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def restore_user(retired_id):
    user = UserService.restore_user(retired_id)
    return jsonify(success_response(
        'User restored successfully. Reset the password before the user logs in.',
        user={'id': user.user_id, 'name': user.name, 'rollNumber': user.roll_number},
    ))


@blueprint.route('/users/<int:user_id>/password', methods=['PUT'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def reset_password(user_id):
    data = load_or_raise(PasswordResetSchema(), request.get_json(silent=True))
    UserService.reset_password(user_id, data['new_password'])
    return jsonify(success_response('Password updated successfully'))


@blueprint.route('/users/staff', methods=['POST'])
@login_required
@require_permission(CAN_MANAGE_USERS)
def create_staff():
    data = load_or_raise(StaffAccountSchema(), request.get_json(silent=True))
    user = UserService.create_staff(data)
    return jsonify(success_response(
        'Staff account created successfully',
        user={
            'id': user.user_id,
            'name': user.name,
            'rollNumber': user.roll_number,
            'department': user.department,
        },
    )), 201


@blueprint.route('/users/profile', methods=['PUT'])
@login_required
def update_profile():
    patch = load_or_raise(ProfileUpdateSchema(), request.get_json(silent=True))
    user, token = UserService.update_profile(current_user.user_id, patch)
    payload = {
        'user': {
            '_id': user.user_id,
            'name': user.name,
            'rollNumber': user.roll_number,
            'role': user.role,
            'department': user.department,
            'section': user.section,
            'batch': user.batch,
        }
    }
    if token:
        payload['token'] = token
    return jsonify(success_response('Profile updated successfully', **payload))
