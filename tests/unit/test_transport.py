"""Unit tests for SMTP delivery."""

import smtplib

import pytest

from fakes import FakeMailer
from shoora_mail.auth.session import Credentials
from shoora_mail.exceptions import AuthenticationError, TransportError
from shoora_mail.lib.config import SmtpConfig
from shoora_mail.services.transport import SmtpTransport

MESSAGE = b"Subject: hi\r\n\r\nbody\r\n"


@pytest.mark.unit
class TestSmtpTransport:
    """SmtpTransport.send hands composed bytes to the SMTP server."""

    def test_send_with_user_credentials(self, transport, mailer, credentials):
        transport.send(MESSAGE, credentials.address, ["jane@example.com"], credentials)

        assert mailer.sent == [
            {
                "user": credentials.address,
                "from": credentials.address,
                "to": ["jane@example.com"],
                "message": MESSAGE,
            }
        ]
        assert mailer.connections[0].closed

    def test_send_as_site_account(self, transport, mailer, smtp_test_config):
        transport.send(MESSAGE, smtp_test_config.site_email, ["jane@example.com"])

        assert mailer.sent[0]["user"] == smtp_test_config.site_email

    def test_site_account_required_for_system_mail(self, mailer):
        transport = SmtpTransport(
            config=SmtpConfig(host="smtp.test.local"),
            smtp_ssl_factory=mailer.factory,
        )

        with pytest.raises(TransportError, match="No site account"):
            transport.send(MESSAGE, "noreply@example.com", ["jane@example.com"])

        assert mailer.connections == []

    def test_recipients_required(self, transport, mailer, credentials):
        with pytest.raises(TransportError):
            transport.send(MESSAGE, credentials.address, [], credentials)

        assert mailer.connections == []

    def test_rejected_login_raises_authentication_error(self, transport, credentials):
        wrong = Credentials(address=credentials.address, secret="wrong")

        with pytest.raises(AuthenticationError):
            transport.send(MESSAGE, wrong.address, ["jane@example.com"], wrong)

    def test_delivery_failure_raises_transport_error(self, transport, mailer, credentials):
        mailer.error = smtplib.SMTPRecipientsRefused({"jane@example.com": (550, b"No such user")})

        with pytest.raises(TransportError) as exc_info:
            transport.send(MESSAGE, credentials.address, ["jane@example.com"], credentials)

        assert "No such user" not in str(exc_info.value)

    def test_network_failure_raises_transport_error(self, smtp_test_config, credentials):
        def unreachable(*args, **kwargs):
            raise ConnectionRefusedError("refused")

        transport = SmtpTransport(config=smtp_test_config, smtp_ssl_factory=unreachable)

        with pytest.raises(TransportError):
            transport.send(MESSAGE, credentials.address, ["jane@example.com"], credentials)

    def test_starttls_when_ssl_disabled(self, credentials):
        mailer = FakeMailer({credentials.address: credentials.secret})
        config = SmtpConfig(host="smtp.test.local", port=587, use_ssl=False)
        transport = SmtpTransport(config=config, smtp_factory=mailer.factory)

        transport.send(MESSAGE, credentials.address, ["jane@example.com"], credentials)

        assert mailer.connections[0].started_tls
        assert mailer.connections[0].port == 587
        assert len(mailer.sent) == 1
