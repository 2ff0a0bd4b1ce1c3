"""HTTP server configuration."""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the HTTP API."""

    host: str = "0.0.0.0"
    port: int = 5000
    api_prefix: str = "/api"
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create config from environment variables."""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            api_prefix=os.getenv("API_PREFIX", "/api").rstrip("/"),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )

    def validate(self) -> None:
        """Validate configuration."""
        if not 0 < self.port < 65536:
            raise ValueError(f"Server port must be between 1 and 65535, got {self.port}")

        if self.api_prefix and not self.api_prefix.startswith("/"):
            raise ValueError("API prefix must start with '/'")
