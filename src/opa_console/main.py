"""Policy console service entry point.

Loads Settings (fails fast when OPA_SERVER_URL is not set), configures
structured logging, and exposes the ASGI application:

    OPA_SERVER_URL=http://localhost:8181 uvicorn opa_console.main:app
"""

from fastapi import FastAPI

from opa_console.app import create_app
from opa_console.observability import configure_logging
from opa_console.settings import Settings

settings = Settings()

configure_logging(level=settings.log_level, fmt=settings.log_format)

app: FastAPI = create_app(settings)
