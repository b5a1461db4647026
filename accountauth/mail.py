"""Provides a minimal API for sending account e-mail over SMTP."""

from email.message import EmailMessage
from typing import Optional
import logging
import smtplib

from flask import Flask, current_app

from .exceptions import MailDeliveryFailed

logger = logging.getLogger(__name__)


class MailSession(object):
    """Configuration for sending messages via an SMTP service."""

    def __init__(self, host: str = 'localhost', port: int = 25,
                 sender: str = 'noreply@localhost',
                 timeout: float = 10) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._timeout = timeout

    def _new_connection(self) -> smtplib.SMTP:
        return smtplib.SMTP(host=self._host, port=self._port,
                            timeout=self._timeout)

    def send_email(self, to: str, subject: str, text_body: str,
                   html_body: Optional[str] = None) -> None:
        """
        Send a plain text e-mail, with an optional HTML alternative.

        Raises
        ------
        :class:`MailDeliveryFailed`
            Could not connect to the SMTP service, or it refused the message.

        """
        message = EmailMessage()
        message['Subject'] = subject
        message['From'] = self._sender
        message['To'] = to
        message.set_content(text_body)
        if html_body is not None:
            message.add_alternative(html_body, subtype='html')

        try:
            with self._new_connection() as conn:
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryFailed(f'Could not send to {to}: {e}') from e
        logger.debug('Sent "%s" to %s', subject, to)


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('SMTP_HOST', 'localhost')
    app.config.setdefault('SMTP_PORT', 25)
    app.config.setdefault('SMTP_TIMEOUT', 10)
    app.config.setdefault('MAIL_SENDER', 'noreply@localhost')


def get_mail_session(app: Optional[Flask] = None) -> MailSession:
    """Get a new :class:`.MailSession` configured for ``app``."""
    config = (app or current_app).config
    return MailSession(host=config.get('SMTP_HOST', 'localhost'),
                       port=int(config.get('SMTP_PORT', 25)),
                       sender=config.get('MAIL_SENDER', 'noreply@localhost'),
                       timeout=float(config.get('SMTP_TIMEOUT', 10)))
