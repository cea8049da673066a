from flask import Blueprint, jsonify, request

from . import error_response, get_processor, json_body

bp = Blueprint('email_counters', __name__)


@bp.route('/emailCounters', methods=['GET'])
def list_counters():
    counters = get_processor().counters.list_counters()
    return jsonify({
        "success": True,
        "emailCounters": [counter.to_dict() for counter in counters],
    })


@bp.route('/emailCounters', methods=['POST'])
def record_send():
    body = json_body()
    email_id = body.get('emailId')
    if not email_id:
        return error_response("Email ID is required", 400)

    is_direct = body.get('isDirectSend', True)
    if not isinstance(is_direct, bool):
        return error_response("isDirectSend must be true or false", 400)
    counter = get_processor().counters.record_send(str(email_id), is_direct=is_direct)
    return jsonify({"success": True, "counter": counter.to_dict()})


@bp.route('/emailCounters', methods=['PUT'])
def update_daily_limit():
    body = json_body()
    email_id = body.get('emailId')
    daily_limit = body.get('dailyLimit')
    if not email_id or daily_limit is None:
        return error_response("Email ID and daily limit are required", 400)
    try:
        daily_limit = int(daily_limit)
    except (TypeError, ValueError):
        return error_response("Daily limit must be a number", 400)
    if daily_limit < 0:
        return error_response("Daily limit must not be negative", 400)

    counter = get_processor().counters.set_daily_limit(str(email_id), daily_limit)
    return jsonify({"success": True, "counter": counter.to_dict()})


@bp.route('/emailCounters', methods=['DELETE'])
def reset_counter():
    email_id = request.args.get('emailId')
    if not email_id:
        return error_response("Email ID is required", 400)

    counter = get_processor().counters.reset_counter(email_id)
    return jsonify({"success": True, "counter": counter.to_dict()})
