import logging

from flask import Blueprint, jsonify

from . import get_processor, json_body

logger = logging.getLogger(__name__)

bp = Blueprint('email_queue', __name__)


@bp.route('/emailQueue', methods=['GET'])
def list_queue():
    entries = get_processor().queue.list_entries()
    return jsonify({
        "success": True,
        "queue": [entry.to_dict() for entry in entries],
        "count": len(entries),
    })


@bp.route('/emailQueue', methods=['POST'])
def enqueue():
    body = json_body()
    bulk = isinstance(body.get('entries'), list)
    raw_entries = body['entries'] if bulk else [body]
    logger.info(f"EmailQueue received {len(raw_entries)} {'bulk' if bulk else 'single'} entries")

    entries = get_processor().enqueue(raw_entries)

    if bulk:
        return jsonify({
            "success": True,
            "message": f"Added {len(entries)} entries to email queue",
            "entries": [entry.to_dict() for entry in entries],
        })
    return jsonify({"success": True, "entry": entries[0].to_dict()})
