import logging

from flask import Blueprint, jsonify

from . import get_processor

logger = logging.getLogger(__name__)

bp = Blueprint('process_email_queue', __name__)


@bp.route('/processEmailQueue', methods=['POST'])
def process_email_queue():
    logger.info("Processing email queue via API...")
    summary = get_processor().process_queue()
    return jsonify({
        "success": True,
        "message": "Email queue processed successfully",
        "summary": summary.to_dict(),
    })


@bp.route('/processEmailQueue', methods=['GET'])
def processor_status():
    return jsonify({
        "success": True,
        **get_processor().status(),
        "message": "Email processor status retrieved successfully",
    })


@bp.route('/processScheduledEmails', methods=['POST'])
def process_scheduled_emails():
    logger.info("Processing scheduled emails via API...")
    summary = get_processor().process_scheduled_emails()
    return jsonify({
        "success": True,
        "message": "Scheduled emails processed successfully",
        "summary": summary.to_dict(),
    })
