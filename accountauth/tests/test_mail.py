"""Tests for :mod:`accountauth.mail`."""

from unittest import TestCase, mock
import smtplib

from flask import Flask

from .. import mail
from ..exceptions import MailDeliveryFailed


class TestMailSession(TestCase):
    """:class:`.MailSession` sends messages over SMTP."""

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_send_email(self, mock_smtp):
        """A multipart message is sent to the recipient."""
        mock_conn = mock.MagicMock()
        mock_smtp.return_value.__enter__.return_value = mock_conn
        session = mail.MailSession('mail.foo.com', 2525, 'noreply@foo.com',
                                   timeout=5)
        session.send_email('alice@example.com', 'Hello', 'Hi there',
                           '<b>Hi there</b>')

        mock_smtp.assert_called_once_with(host='mail.foo.com', port=2525,
                                          timeout=5)
        self.assertEqual(mock_conn.send_message.call_count, 1)
        message = mock_conn.send_message.call_args[0][0]
        self.assertEqual(message['To'], 'alice@example.com')
        self.assertEqual(message['From'], 'noreply@foo.com')
        self.assertEqual(message['Subject'], 'Hello')
        self.assertTrue(message.is_multipart())

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_send_plain_email(self, mock_smtp):
        """The HTML alternative is optional."""
        mock_conn = mock.MagicMock()
        mock_smtp.return_value.__enter__.return_value = mock_conn
        mail.MailSession().send_email('alice@example.com', 'Hello', 'Hi')
        message = mock_conn.send_message.call_args[0][0]
        self.assertFalse(message.is_multipart())

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_connection_failed(self, mock_smtp):
        """:class:`.MailDeliveryFailed` is raised when sending fails."""
        mock_smtp.side_effect = ConnectionRefusedError
        with self.assertRaises(MailDeliveryFailed):
            mail.MailSession().send_email('alice@example.com', 'Hello', 'Hi')

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_message_refused(self, mock_smtp):
        """:class:`.MailDeliveryFailed` is raised when the server refuses."""
        mock_conn = mock.MagicMock()
        mock_conn.send_message.side_effect = \
            smtplib.SMTPRecipientsRefused({})
        mock_smtp.return_value.__enter__.return_value = mock_conn
        with self.assertRaises(MailDeliveryFailed):
            mail.MailSession().send_email('alice@example.com', 'Hello', 'Hi')


class TestGetMailSession(TestCase):
    """:func:`.get_mail_session` uses the application config."""

    def test_get_mail_session(self):
        app = Flask('foo')
        mail.init_app(app)
        app.config['SMTP_HOST'] = 'mail.foo.com'
        with app.app_context():
            session = mail.get_mail_session()
        self.assertEqual(session._host, 'mail.foo.com')
        self.assertEqual(session._port, 25)
        self.assertEqual(session._sender, 'noreply@localhost')
