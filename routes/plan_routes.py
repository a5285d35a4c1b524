"""
Public lookups used by the pricing page and the storefront tag.

GET /api/v1/plans - plans currently offered, with their descriptions
GET /api/v1/ip    - caller's IP and its country code
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from config import AppSettings
from dependencies import get_geoip, get_settings
from infrastructure.geoip import GeoIPService
from schemas.dto.responses.plan import IpCountryResponse, PlanResponse
from services.plans import PLANS, plan_description
from shared.ip_utils import get_client_ip

router = APIRouter(prefix="/api/v1", tags=["plans"])


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans(
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> list[PlanResponse]:
    batch_size = settings.billing.billing_batch_size
    return [
        PlanResponse(
            **plan.model_dump(),
            description=plan_description(plan, batch_size),
        )
        for plan in PLANS
    ]


@router.get("/ip", response_model=IpCountryResponse)
async def ip_country(
    request: Request,
    geoip: Annotated[GeoIPService, Depends(get_geoip)],
) -> IpCountryResponse:
    ip = get_client_ip(request)
    return IpCountryResponse(ip=ip, country=await geoip.get_country_code(ip))
