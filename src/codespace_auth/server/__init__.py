"""CodeSpace web surface - FastAPI app serving the auth screen."""

import logging

import uvicorn

from .app import create_app
from ..core.config import get_auth_config

__all__ = ["create_app", "main"]


def main():
    """Entry point for the CodeSpace auth web server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = get_auth_config()
    uvicorn.run(
        create_app(config),
        host="0.0.0.0" if config.external_url else "127.0.0.1",
        port=config.port,
        log_level="info",
    )
