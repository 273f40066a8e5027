# File: examdesk_app/modules/system/routes.py
from flask import current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from examdesk_app.core.error_handlers import success_response
from examdesk_app.core.extensions import db
from examdesk_app.utils.time_utils import isoformat_utc, utcnow
from . import system_bp as blueprint


@blueprint.route('/health', methods=['GET'])
def health():
    try:
        db.session.execute(text('SELECT 1'))
        db_state = 'connected'
    except SQLAlchemyError as exc:
        current_app.logger.error(f"Health check database failure: {exc}")
        db_state = 'disconnected'
    return jsonify(success_response(status='OK', db=db_state, timestamp=isoformat_utc(utcnow())))


@blueprint.route('/time', methods=['GET'])
def server_time():
    """Server clock, for clients that need to detect skew before a timed quiz."""
    return jsonify(success_response(serverTime=isoformat_utc(utcnow())))
