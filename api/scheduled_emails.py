from flask import Blueprint, jsonify

from . import get_processor

bp = Blueprint('scheduled_emails', __name__)


@bp.route('/scheduledEmails', methods=['GET'])
def scheduled_emails():
    return jsonify({
        "success": True,
        "scheduledEmails": get_processor().scheduled_overview(),
    })
