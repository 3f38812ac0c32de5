"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (Firebase clients, telemetry).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from classconnect.core.config import get_settings
from classconnect.infrastructure.firebase import (
    close_firebase,
    get_auth_gateway,
    get_firestore_client,
    init_firebase,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: Firebase clients (if configured), telemetry (if enabled).
    Shutdown: Firebase HTTP pools, telemetry.
    """
    settings = get_settings()

    # ---- Startup ----
    if init_firebase(settings):
        logger.info("Firebase clients initialized")
    else:
        logger.warning("Firebase not configured; credential endpoints will answer 503")
    app.state.firestore = get_firestore_client()
    app.state.auth_gateway = get_auth_gateway()

    if settings.telemetry_enabled:
        from classconnect.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument(app)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    await close_firebase()
    app.state.firestore = None
    app.state.auth_gateway = None

    from classconnect.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")
