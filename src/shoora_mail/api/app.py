"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shoora_mail.api.routes import get_mail_service, router
from shoora_mail.lib.config import ServerConfig, server_config
from shoora_mail.services.mail_service import MailService

__version__ = "1.0.0"


def create_app(service: MailService | None = None, config: ServerConfig | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        service: MailService to serve requests with (default: shared instance)
        config: Server configuration (default: module-level server_config)

    Returns:
        Configured FastAPI application
    """
    config = config or server_config

    app = FastAPI(
        title="Shoora Mail API",
        description="Stateless webmail backend over IMAP and SMTP",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=config.api_prefix)

    if service is not None:
        app.dependency_overrides[get_mail_service] = lambda: service

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
