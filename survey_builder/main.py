from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from survey_builder.config import AppConfig, load_config
from survey_builder.http.problem import (
    ALLOWED_METHODS,
    handle_domain_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from survey_builder.http.request_id import RequestIdMiddleware
from survey_builder.logging_setup import configure_logging
from survey_builder.logic.conversion import ConversionGateway
from survey_builder.logic.credentials import CredentialHasher
from survey_builder.logic.errors import SurveyBuilderError
from survey_builder.logic.record_store import RecordStore
from survey_builder.routes import api_router
from survey_builder.services import build_services

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[RecordStore] = None,
    gateway: Optional[ConversionGateway] = None,
    hasher: Optional[CredentialHasher] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Collaborators default to what the configuration describes (SQL store,
    Gemini gateway, scrypt hasher); tests pass their own.
    """
    try:
        configure_logging()
    except Exception:
        logging.getLogger(__name__).error("global_logging_configuration_failed", exc_info=True)
    config = config or load_config()
    app = FastAPI(title="Survey Builder")
    app.state.services = build_services(config, store=store, gateway=gateway, hasher=hasher)

    app.add_exception_handler(SurveyBuilderError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.origins,
        allow_methods=[m.strip() for m in ALLOWED_METHODS.split(",")],
        allow_headers=["Content-Type", "x-username", "X-Request-Id"],
        expose_headers=["X-Request-Id", "Content-Disposition"],
    )

    app.include_router(api_router)

    @app.get("/health")
    def health():
        ping = getattr(app.state.services.store, "ping", None)
        store_ok = bool(ping()) if callable(ping) else True
        return {"status": "ok" if store_ok else "degraded", "store": store_ok}

    logger.info("app_created origins=%s", config.cors.origins)
    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
