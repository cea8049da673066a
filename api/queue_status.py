from flask import Blueprint, jsonify

from . import get_processor

bp = Blueprint('queue_status', __name__)


@bp.route('/queueStatus', methods=['GET'])
def queue_status():
    return jsonify({"success": True, "queueStatus": get_processor().queue_status()})
