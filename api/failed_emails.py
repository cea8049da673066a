import logging

from flask import Blueprint, jsonify

from . import error_response, get_processor, json_body

logger = logging.getLogger(__name__)

bp = Blueprint('failed_emails', __name__)


@bp.route('/failedEmails', methods=['GET'])
def list_failed_emails():
    failed = get_processor().get_failed_emails()
    return jsonify({
        "success": True,
        "failedEmails": [email.to_dict() for email in failed],
        "count": len(failed),
    })


@bp.route('/failedEmails', methods=['POST'])
def failed_email_action():
    body = json_body()
    action = body.get('action')
    email_id = body.get('emailId')
    logger.info(f"Processing failed email action: {action} for email: {email_id}")

    if action == 'retry':
        if not email_id:
            return error_response("Email ID is required for retry action", 400)
        result = get_processor().retry_failed_email(str(email_id))
        return jsonify({
            "success": True,
            "message": result["message"],
            "action": "retry",
            "emailId": email_id,
            "entry": result["entry"].to_dict(),
        })

    if action == 'clear':
        result = get_processor().clear_failed_emails()
        return jsonify({
            "success": True,
            "message": result["message"],
            "action": "clear",
        })

    return error_response("Invalid action. Supported actions: retry, clear", 400)
