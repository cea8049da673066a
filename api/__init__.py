import logging

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from queue_processor.errors import (
    BlockedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def get_processor():
    """The EmailProcessor bound to the running app"""
    return current_app.extensions["email_processor"]


def error_response(message, status_code, **extra):
    response = jsonify({"success": False, "error": message, **extra})
    response.status_code = status_code
    return response


def json_body():
    """The request JSON as a dict; a missing or empty body reads as {}"""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def init_app(app):
    from .email_counters import bp as email_counters_bp
    from .email_queue import bp as email_queue_bp
    from .failed_emails import bp as failed_emails_bp
    from .process_email_queue import bp as process_email_queue_bp
    from .processing_stats import bp as processing_stats_bp
    from .queue_status import bp as queue_status_bp
    from .scheduled_emails import bp as scheduled_emails_bp

    app.register_blueprint(email_queue_bp)
    app.register_blueprint(process_email_queue_bp)
    app.register_blueprint(scheduled_emails_bp)
    app.register_blueprint(failed_emails_bp)
    app.register_blueprint(email_counters_bp)
    app.register_blueprint(processing_stats_bp)
    app.register_blueprint(queue_status_bp)

    register_error_handlers(app)


def register_error_handlers(app):

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return error_response(str(e), 400, fields=e.fields)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return error_response(str(e), 404)

    @app.errorhandler(BlockedError)
    def handle_blocked(e):
        return error_response(str(e), 400, emailId=e.sender_id)

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(e):
        app.logger.error(f"Store error: {str(e)}")
        return error_response(str(e), 500)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return error_response(e.description, e.code)

    @app.errorhandler(Exception)
    def handle_unhandled_exception(e):
        app.logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return error_response(str(e), 500)
