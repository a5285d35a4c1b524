"""Response DTOs for the plan catalog (GET /api/v1/plans)."""

from __future__ import annotations

from pydantic import BaseModel


class PlanResponse(BaseModel):
    id: str
    name: str
    price_per_batch: float
    free_prompts: int
    price_cap: float
    description: str


class IpCountryResponse(BaseModel):
    """Response body for GET /api/v1/ip."""

    ip: str
    country: str
