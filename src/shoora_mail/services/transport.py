"""SMTP delivery of composed messages."""

import smtplib
import ssl

from shoora_mail.auth.session import Credentials
from shoora_mail.exceptions import AuthenticationError, TransportError
from shoora_mail.lib.config import SmtpConfig, smtp_config
from shoora_mail.lib.logger import get_logger, hash_address

logger = get_logger(__name__)


class SmtpTransport:
    """
    Deliver messages through the configured SMTP server.

    User mail is sent with the user's own credentials. Passing
    ``credentials=None`` sends as the site account (system mail).
    """

    def __init__(self, config: SmtpConfig | None = None, smtp_factory=None, smtp_ssl_factory=None):
        """
        Initialize transport.

        Args:
            config: SMTP configuration (default: module-level smtp_config)
            smtp_factory: Replacement for smtplib.SMTP, used by tests
            smtp_ssl_factory: Replacement for smtplib.SMTP_SSL, used by tests
        """
        self._config = config or smtp_config
        self._smtp_factory = smtp_factory or smtplib.SMTP
        self._smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(
        self,
        message: bytes,
        sender: str,
        recipients: list[str],
        credentials: Credentials | None = None,
    ) -> None:
        """
        Deliver ``message`` to ``recipients``.

        Args:
            message: Composed message bytes
            sender: Envelope sender
            recipients: Envelope recipients
            credentials: User credentials, or None for the site account

        Raises:
            AuthenticationError: SMTP login rejected
            TransportError: No recipients, no site account, or delivery failed
        """
        if not recipients:
            raise TransportError("No recipients given")

        if credentials is not None:
            username, password = credentials.address, credentials.secret
        elif self._config.has_site_account:
            username, password = self._config.site_email, self._config.site_password
        else:
            raise TransportError("No site account configured for system mail")

        hashed = hash_address(username)
        try:
            with self._connect() as server:
                server.login(username, password)
                refused = server.sendmail(sender, recipients, message)
        except smtplib.SMTPAuthenticationError as e:
            logger.warning(f"SMTP authentication rejected for user {hashed}")
            raise AuthenticationError("Invalid credentials") from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery failed for user {hashed}: {e}")
            raise TransportError("Failed to deliver message") from e

        if refused:
            logger.warning(f"{len(refused)} of {len(recipients)} recipients refused")
        logger.info(f"Message delivered for user {hashed} to {len(recipients)} recipient(s)")

    def _connect(self) -> smtplib.SMTP:
        context = self._ssl_context()
        if self._config.use_ssl:
            return self._smtp_ssl_factory(
                self._config.host,
                self._config.port,
                timeout=self._config.timeout,
                context=context,
            )

        server = self._smtp_factory(self._config.host, self._config.port, timeout=self._config.timeout)
        try:
            server.starttls(context=context)
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self._config.verify_certificates:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context
