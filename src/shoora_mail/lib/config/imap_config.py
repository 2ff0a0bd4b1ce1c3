"""IMAP server configuration."""

import os
from dataclasses import dataclass


def _optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass(frozen=True)
class ImapConfig:
    """Configuration for the remote IMAP server.

    Certificate verification is off by default to match the hosted mail
    provider this backend was built against. Set IMAP_VERIFY_CERTIFICATES=true
    for any host with a valid certificate chain.
    """

    host: str = "imap.stackmail.com"
    port: int = 993
    use_ssl: bool = True
    verify_certificates: bool = False

    # None leaves the socket timeout to imapclient
    timeout: float | None = None

    @classmethod
    def from_env(cls) -> "ImapConfig":
        """Create config from environment variables."""
        return cls(
            host=os.getenv("IMAP_HOST", "imap.stackmail.com"),
            port=int(os.getenv("IMAP_PORT", "993")),
            use_ssl=os.getenv("IMAP_USE_SSL", "true").lower() == "true",
            verify_certificates=os.getenv("IMAP_VERIFY_CERTIFICATES", "false").lower() == "true",
            timeout=_optional_float(os.getenv("IMAP_TIMEOUT")),
        )

    def validate(self) -> None:
        """Validate configuration."""
        if not self.host:
            raise ValueError("IMAP host cannot be empty")

        if not 0 < self.port < 65536:
            raise ValueError(f"IMAP port must be between 1 and 65535, got {self.port}")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("IMAP timeout must be positive")
