"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from fakes import FakeIMAPServer, FakeMailer, make_raw_message  # noqa: E402

from shoora_mail.auth.session import Credentials, MailSessionFactory  # noqa: E402
from shoora_mail.email.mailbox import MailboxExecutor  # noqa: E402
from shoora_mail.lib.config import AppConfig, ImapConfig, MailboxConfig, SmtpConfig  # noqa: E402
from shoora_mail.services.mail_service import MailService  # noqa: E402
from shoora_mail.services.transport import SmtpTransport  # noqa: E402

USER_EMAIL = "john.doe@example.com"
USER_PASSWORD = "secret"
SITE_EMAIL = "noreply@shoora.example"
SITE_PASSWORD = "site-secret"


# ============================================================================
# Configuration
# ============================================================================


@pytest.fixture
def imap_test_config():
    """IMAP config pointing at a host that is never contacted."""
    return ImapConfig(host="imap.test.local", port=993, use_ssl=True)


@pytest.fixture
def mailbox_test_config():
    """Mailbox config with small fetch windows."""
    return MailboxConfig(inbox_fetch_limit=3, folder_fetch_limit=5)


@pytest.fixture
def smtp_test_config():
    """SMTP config with a site account for system mail."""
    return SmtpConfig(
        host="smtp.test.local",
        port=465,
        site_email=SITE_EMAIL,
        site_password=SITE_PASSWORD,
    )


@pytest.fixture
def app_test_config():
    return AppConfig(welcome_mail_enabled=True)


# ============================================================================
# Mail server fakes
# ============================================================================


@pytest.fixture
def credentials():
    """Provide valid test credentials."""
    return Credentials(address=USER_EMAIL, secret=USER_PASSWORD)


@pytest.fixture
def imap_server():
    """Mail server with five inbox messages (uids 1-5, oldest first) and standard folders."""
    server = FakeIMAPServer(password=USER_PASSWORD)
    for folder in ("Sent", "Drafts", "Archive", "Trash"):
        server.create_folder(folder)

    for number in range(1, 6):
        server.deliver(
            "INBOX",
            make_raw_message(
                subject=f"Message {number}",
                text=f"Body of message {number}",
                date=f"Mon, 0{number} Jan 2024 12:00:00 +0000",
            ),
            flags=[b"\\Seen"] if number % 2 == 0 else [],
        )
    return server


@pytest.fixture
def session_factory(imap_server, imap_test_config):
    return MailSessionFactory(config=imap_test_config, client_factory=imap_server.client_factory)


@pytest.fixture
def executor(session_factory, mailbox_test_config):
    return MailboxExecutor(session_factory=session_factory, config=mailbox_test_config)


@pytest.fixture
def mailer():
    """SMTP fake accepting the test user and the site account."""
    return FakeMailer({USER_EMAIL: USER_PASSWORD, SITE_EMAIL: SITE_PASSWORD})


@pytest.fixture
def transport(mailer, smtp_test_config):
    return SmtpTransport(
        config=smtp_test_config,
        smtp_factory=mailer.factory,
        smtp_ssl_factory=mailer.factory,
    )


@pytest.fixture
def mail_service(executor, transport, smtp_test_config, app_test_config):
    """MailService wired to the in-memory server and mailer."""
    return MailService(
        executor=executor,
        transport=transport,
        smtp=smtp_test_config,
        app=app_test_config,
    )


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (HTTP app, CLI)"
    )
