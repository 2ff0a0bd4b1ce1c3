"""Mailbox naming and fetch window configuration."""

import os
from dataclasses import dataclass, field


def _folder_list(value: str) -> tuple[str, ...]:
    return tuple(name.strip() for name in value.split(",") if name.strip())


@dataclass(frozen=True)
class MailboxConfig:
    """Configuration for folder names, fetch sizes and server keywords."""

    inbox_folder: str = "INBOX"

    # Fetch windows (newest N messages)
    inbox_fetch_limit: int = 10
    folder_fetch_limit: int = 20

    # Append targets, tried in order
    sent_folders: tuple[str, ...] = field(default_factory=lambda: ("Sent", "Sent Items"))
    drafts_folders: tuple[str, ...] = field(default_factory=lambda: ("Drafts",))

    # Server-specific keyword, not an IMAP system flag
    important_flag: str = "Important"

    @classmethod
    def from_env(cls) -> "MailboxConfig":
        """Create config from environment variables."""
        return cls(
            inbox_folder=os.getenv("INBOX_FOLDER", "INBOX"),
            inbox_fetch_limit=int(os.getenv("INBOX_FETCH_LIMIT", "10")),
            folder_fetch_limit=int(os.getenv("FOLDER_FETCH_LIMIT", "20")),
            sent_folders=_folder_list(os.getenv("SENT_FOLDERS", "Sent,Sent Items")),
            drafts_folders=_folder_list(os.getenv("DRAFTS_FOLDERS", "Drafts")),
            important_flag=os.getenv("IMPORTANT_FLAG", "Important"),
        )

    def validate(self) -> None:
        """Validate configuration."""
        if self.inbox_fetch_limit <= 0 or self.folder_fetch_limit <= 0:
            raise ValueError("Fetch limits must be positive")

        if not self.sent_folders:
            raise ValueError("At least one sent folder must be configured")

        if not self.drafts_folders:
            raise ValueError("At least one drafts folder must be configured")

        if not self.important_flag or self.important_flag.startswith("\\"):
            raise ValueError("Important flag must be a plain keyword")
