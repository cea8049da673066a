from flask import Blueprint, jsonify

from queue_processor.errors import ValidationError
from queue_processor.utils.time_utils import parse_datetime

from . import get_processor, json_body

bp = Blueprint('processing_stats', __name__)


def _int_field(body, name):
    value = body.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number", fields=[name])


@bp.route('/processingStats', methods=['GET'])
def get_stats():
    stats = get_processor().stats.get_current()
    return jsonify({"success": True, "processingStats": stats.to_dict()})


@bp.route('/processingStats', methods=['POST'])
def accumulate_stats():
    body = json_body()
    stats = get_processor().stats.accumulate(
        processed=_int_field(body, 'processed') or 0,
        failed=_int_field(body, 'failed') or 0,
    )
    return jsonify({"success": True, "processingStats": stats.to_dict()})


@bp.route('/processingStats', methods=['PUT'])
def overwrite_stats():
    body = json_body()
    try:
        last_processing_time = parse_datetime(body.get('lastProcessingTime'))
    except (TypeError, ValueError):
        raise ValidationError("lastProcessingTime must be an ISO timestamp", fields=['lastProcessingTime'])

    stats = get_processor().stats.overwrite(
        total_processed=_int_field(body, 'totalProcessed'),
        total_failed=_int_field(body, 'totalFailed'),
        session_processed=_int_field(body, 'sessionProcessed'),
        session_failed=_int_field(body, 'sessionFailed'),
        last_processing_time=last_processing_time,
    )
    return jsonify({"success": True, "processingStats": stats.to_dict()})


@bp.route('/processingStats', methods=['DELETE'])
def reset_stats():
    stats = get_processor().stats.reset_all()
    return jsonify({
        "success": True,
        "message": "Processing stats reset successfully",
        "processingStats": stats.to_dict(),
    })


@bp.route('/resetProcessedCount', methods=['POST'])
def reset_session_stats():
    stats = get_processor().stats.reset_session()
    return jsonify({
        "success": True,
        "message": "Processed count reset successfully",
        "processingStats": stats.to_dict(),
    })
