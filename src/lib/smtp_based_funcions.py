# In src/lib/smtp_based_funcions.py

import smtplib
import socket
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import email.utils
from typing import Dict, Iterable, Optional
import logging

from queue_processor.errors import TransportError

logger = logging.getLogger(__name__)


class EmailSender:
    """One SMTP sending account"""

    def __init__(self, email, app_password, display_name=None,
                 smtp_host="smtp.gmail.com", smtp_port=587):
        self.email = email
        self.app_password = app_password
        self.display_name = display_name or email.split('@')[0].title()
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port

    def build_message(self, recipient, subject, body, from_name=None):
        msg = MIMEMultipart('alternative')

        msg['From'] = email.utils.formataddr((from_name or self.display_name, self.email))
        msg['To'] = recipient
        msg['Subject'] = subject
        msg['Date'] = email.utils.formatdate(localtime=True)
        msg['Message-ID'] = email.utils.make_msgid(domain=self.email.split('@')[1])

        cleaned_body = (body.replace('\\n', '\n')
                          .replace('\n\n\n', '\n\n')
                          .replace('\\t', '    ')
                          .replace('\\r', ''))

        msg.attach(MIMEText(cleaned_body, 'plain', 'utf-8'))
        if '<' in cleaned_body and '>' in cleaned_body:
            msg.attach(MIMEText(cleaned_body, 'html', 'utf-8'))
        return msg

    def send_email(self, recipient, subject, body, from_name=None) -> Dict:
        """
        Send one message over SMTP with STARTTLS.
        Returns the headers of the sent message, raises TransportError on any failure.
        """
        msg = self.build_message(recipient, subject, body, from_name=from_name)
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.email, self.app_password)
                refused = server.send_message(msg)
        except (smtplib.SMTPException, socket.error) as e:
            logger.error(f"Error sending email from {self.email}: {str(e)}")
            raise TransportError(str(e)) from e

        if refused:
            raise TransportError(f"Recipient refused: {refused}")

        return {
            'Message-ID': msg['Message-ID'],
            'Thread-Topic': subject,
            'Date': msg['Date'],
        }


class EmailTransport:
    """Routes a send to the configured account named by its credentials reference"""

    def __init__(self, senders: Iterable[EmailSender]):
        self.senders: Dict[str, EmailSender] = {sender.email: sender for sender in senders}

    @property
    def sender_ids(self):
        return list(self.senders.keys())

    def send(self, from_email: str, to: str, subject: str, body: str,
             from_name: Optional[str] = None, credentials_ref: Optional[str] = None) -> Dict:
        sender = self.senders.get(credentials_ref or from_email)
        if sender is None:
            raise TransportError(f"No SMTP account configured for {credentials_ref or from_email}")
        if from_name in (None, "", "N/A"):
            from_name = None
        return sender.send_email(recipient=to, subject=subject, body=body, from_name=from_name)
