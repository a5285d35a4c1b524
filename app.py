"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.commerce.protocol import BillingProvider
from infrastructure.commerce.shopify import ShopifyBillingProvider
from infrastructure.couchdb.client import CouchClient
from infrastructure.couchdb.setup import (
    configure_databases,
    geodirects_database,
    users_database,
)
from infrastructure.geoip import GeoIPService
from infrastructure.http_client import HttpClient
from routes.geodirect_routes import router as geodirect_router
from routes.health_routes import router as health_router
from routes.plan_routes import router as plan_router
from services.accounts import AccountRepository
from services.geodirects import GeodirectService
from services.metering import UsageMeter
from services.prompt_logs import PromptLogManager
from shared.logging import setup_logging


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    couch_transport: Optional[httpx.AsyncBaseTransport] = None,
    billing: Optional[BillingProvider] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    ``couch_transport`` and ``billing`` replace the CouchDB transport and the
    commerce client, for running against in-process fakes.
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging.log_level, settings.logging.log_format)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        couch = CouchClient(
            settings.couchdb.couchdb_url,
            HttpClient(settings.couchdb.couchdb_timeout_seconds, transport=couch_transport),
        )
        await configure_databases(couch, settings.app_name)

        shopify_http: Optional[HttpClient] = None
        billing_provider = billing
        if billing_provider is None:
            shopify_http = HttpClient(settings.billing.shopify_timeout_seconds)
            billing_provider = ShopifyBillingProvider(
                shopify_http, api_version=settings.billing.shopify_api_version
            )

        prompt_logs = PromptLogManager(couch, settings.app_name)
        geoip = GeoIPService(
            settings.geoip.geoip_country_db,
            localhost_country=settings.geoip.geoip_localhost_country,
        )

        app.state.settings = settings
        app.state.couch = couch
        app.state.prompt_logs = prompt_logs
        app.state.geoip = geoip
        app.state.geodirects = GeodirectService(
            couch.database(geodirects_database(settings.app_name).name), prompt_logs
        )
        app.state.accounts = AccountRepository(
            couch.database(users_database(settings.app_name).name)
        )
        app.state.usage_meter = UsageMeter(
            prompt_logs,
            billing_provider,
            batch_size=settings.billing.billing_batch_size,
            window_days=settings.billing.billing_window_days,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        geoip.close()
        await couch.aclose()
        if shopify_http is not None:
            await shopify_http.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=None if settings.is_production else settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(geodirect_router)
    app.include_router(plan_router)

    return app
