"""Configuration management for Shoora Mail."""

from dotenv import load_dotenv

from shoora_mail.lib.config.app_config import AppConfig
from shoora_mail.lib.config.imap_config import ImapConfig
from shoora_mail.lib.config.mailbox_config import MailboxConfig
from shoora_mail.lib.config.server_config import ServerConfig
from shoora_mail.lib.config.smtp_config import SmtpConfig

# Load environment variables from .env file
load_dotenv()

# Load and validate all configs
imap_config = ImapConfig.from_env()
smtp_config = SmtpConfig.from_env()
mailbox_config = MailboxConfig.from_env()
app_config = AppConfig.from_env()
server_config = ServerConfig.from_env()

# Validate
imap_config.validate()
smtp_config.validate()
mailbox_config.validate()
app_config.validate()
server_config.validate()

__all__ = [
    "imap_config",
    "smtp_config",
    "mailbox_config",
    "app_config",
    "server_config",
    "ImapConfig",
    "SmtpConfig",
    "MailboxConfig",
    "AppConfig",
    "ServerConfig",
]
