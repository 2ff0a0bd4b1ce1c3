"""SMTP transport configuration."""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SmtpConfig:
    """Configuration for outbound mail delivery.

    The site account is used for system mail (the welcome notification);
    user mail is always sent with the user's own credentials.
    """

    host: str = "smtp.stackmail.com"
    port: int = 465
    use_ssl: bool = True
    verify_certificates: bool = False
    timeout: float = 30.0

    # System sender
    site_email: str = ""
    site_password: str = field(default="", repr=False)
    site_name: str = "Shoora Mail"

    @classmethod
    def from_env(cls) -> "SmtpConfig":
        """Create config from environment variables."""
        return cls(
            host=os.getenv("SMTP_HOST", "smtp.stackmail.com"),
            port=int(os.getenv("SMTP_PORT", "465")),
            use_ssl=os.getenv("SMTP_USE_SSL", "true").lower() == "true",
            verify_certificates=os.getenv("SMTP_VERIFY_CERTIFICATES", "false").lower() == "true",
            timeout=float(os.getenv("SMTP_TIMEOUT", "30")),
            site_email=os.getenv("SITE_EMAIL", ""),
            site_password=os.getenv("SITE_PASSWORD", ""),
            site_name=os.getenv("SITE_NAME", "Shoora Mail"),
        )

    @property
    def has_site_account(self) -> bool:
        """Whether system mail can be sent."""
        return bool(self.site_email and self.site_password)

    def validate(self) -> None:
        """Validate configuration."""
        if not self.host:
            raise ValueError("SMTP host cannot be empty")

        if not 0 < self.port < 65536:
            raise ValueError(f"SMTP port must be between 1 and 65535, got {self.port}")

        if self.timeout <= 0:
            raise ValueError("SMTP timeout must be positive")
