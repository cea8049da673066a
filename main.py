import os
import logging

from flask import Flask
from flask_cors import CORS

from src.lib.config import Config, console, initialize_sender_configs, setup_logging
from queue_processor import EmailProcessor

logger = logging.getLogger(__name__)


def build_transport(app_config, senders):
    from src.lib.smtp_based_funcions import EmailSender, EmailTransport

    return EmailTransport(
        EmailSender(
            email=sender['email'],
            app_password=sender['app_password'],
            display_name=sender['name'],
            smtp_host=app_config.get('SMTP_HOST', 'smtp.gmail.com'),
            smtp_port=app_config.get('SMTP_PORT', 587),
        )
        for sender in senders
    )


def create_app(config_object=None, db=None, transport=None, senders=None, clock=None):
    """
    Application factory. The store handle, mail transport and sender accounts
    can be passed in; otherwise they are built from the environment.
    """
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    if not app.testing:
        setup_logging()
    CORS(app)

    if senders is None:
        senders = initialize_sender_configs()
    if db is None:
        from src.lib.supabase_client import SupabaseClient
        db = SupabaseClient(app.config.get('SUPABASE_URL'), app.config.get('SUPABASE_KEY'))
    if transport is None:
        transport = build_transport(app.config, senders)

    kwargs = {'clock': clock} if clock else {}
    app.extensions['email_processor'] = EmailProcessor(
        db, transport, current_sender=app.config.get('SENDER_EMAIL'), **kwargs
    )
    app.extensions['sender_configs'] = senders

    from api import init_app as init_api
    init_api(app)
    register_commands(app)

    return app


def register_commands(app):

    @app.cli.command('process-queue')
    def process_queue_command():
        """Send every pending email in the queue"""
        summary = app.extensions['email_processor'].process_queue()
        console.log(f"Processed {summary.processed}, failed {summary.failed}, "
                    f"scheduled {summary.scheduled}")

    @app.cli.command('process-scheduled')
    def process_scheduled_command():
        """Send scheduled emails whose time has come"""
        summary = app.extensions['email_processor'].process_scheduled_emails()
        console.log(f"Processed {summary.processed}, failed {summary.failed}")

    @app.cli.command('init-counters')
    def init_counters_command():
        """Create an email counter row for each configured sender"""
        processor = app.extensions['email_processor']
        created = processor.counters.ensure_counters(app.extensions['sender_configs'])
        if not created:
            console.log("All senders already have email counters")
        for counter in created:
            console.log(f"Created counter for {counter.sender_id} (daily limit {counter.daily_limit})")


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    create_app().run(host="0.0.0.0", port=port)
