"""Application-level configuration."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Configuration for application settings."""

    # Welcome notification after login
    welcome_mail_enabled: bool = True

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    log_file: Path | None = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create config from environment variables."""
        log_file = os.getenv("LOG_FILE")
        return cls(
            welcome_mail_enabled=os.getenv("WELCOME_MAIL_ENABLED", "true").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=Path(log_file) if log_file else None,
        )

    def validate(self) -> None:
        """Validate configuration."""
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(
                f"Log level must be one of {valid_log_levels}, got {self.log_level}"
            )
