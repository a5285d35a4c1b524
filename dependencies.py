"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Client handles and services are built once in
the application lifespan and stored on app.state.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Header, Request

from config import AppSettings
from infrastructure.geoip import GeoIPService
from services.accounts import AccountRepository
from services.geodirects import GeodirectService
from services.metering import UsageMeter


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_geodirect_service(request: Request) -> GeodirectService:
    return request.app.state.geodirects


def get_account_repository(request: Request) -> AccountRepository:
    return request.app.state.accounts


def get_usage_meter(request: Request) -> UsageMeter:
    return request.app.state.usage_meter


def get_geoip(request: Request) -> GeoIPService:
    return request.app.state.geoip


def get_tenant_id(x_shop_id: Annotated[int, Header()]) -> int:
    """Shop id of the authenticated session, set by the upstream auth layer."""
    return x_shop_id
