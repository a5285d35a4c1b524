"""
Geodirect management and prompt logging.

GET    /api/v1/geodirects/            - list the shop's geodirects (?hits=true adds counts)
POST   /api/v1/geodirects/            - create a geodirect
GET    /api/v1/geodirects/{id}        - fetch one geodirect
PUT    /api/v1/geodirects/{id}        - edit; body carries the ``_rev`` read earlier
DELETE /api/v1/geodirects/{id}?rev=   - delete at the given revision
POST   /api/v1/geodirects/{id}/log    - storefront tag reports a shown prompt

All routes except /log act on the shop from the ``X-Shop-Id`` header. A
stale revision is answered with 409; the client re-fetches and retries.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from dependencies import (
    get_account_repository,
    get_geodirect_service,
    get_tenant_id,
    get_usage_meter,
)
from schemas.dto.requests.geodirect import (
    CreateGeodirectRequest,
    LogPromptRequest,
    UpdateGeodirectRequest,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.models.geodirect import GeodirectDoc
from schemas.models.prompt import LoggedPromptDoc
from services.accounts import AccountRepository
from services.geodirects import GeodirectService
from services.metering import UsageMeter

router = APIRouter(
    prefix="/api/v1/geodirects",
    tags=["geodirects"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)

TenantId = Annotated[int, Depends(get_tenant_id)]
Geodirects = Annotated[GeodirectService, Depends(get_geodirect_service)]


@router.get("/", response_model=list[GeodirectDoc])
async def list_geodirects(
    tenant_id: TenantId,
    service: Geodirects,
    hits: bool = False,
) -> list[GeodirectDoc]:
    return await service.list_for_tenant(tenant_id, with_hits=hits)


@router.post("/", response_model=GeodirectDoc, status_code=201)
async def create_geodirect(
    body: CreateGeodirectRequest,
    tenant_id: TenantId,
    service: Geodirects,
) -> GeodirectDoc:
    return await service.create(tenant_id, body)


@router.get("/{geodirect_id}", response_model=GeodirectDoc)
async def get_geodirect(
    geodirect_id: str,
    tenant_id: TenantId,
    service: Geodirects,
) -> GeodirectDoc:
    return await service.get(tenant_id, geodirect_id)


@router.put("/{geodirect_id}", response_model=GeodirectDoc)
async def update_geodirect(
    geodirect_id: str,
    body: UpdateGeodirectRequest,
    tenant_id: TenantId,
    service: Geodirects,
) -> GeodirectDoc:
    return await service.update(tenant_id, geodirect_id, body.changes(), body.revision)


@router.delete("/{geodirect_id}", response_model=MessageResponse)
async def delete_geodirect(
    geodirect_id: str,
    tenant_id: TenantId,
    service: Geodirects,
    rev: Annotated[str, Query(min_length=1)],
) -> MessageResponse:
    await service.delete(tenant_id, geodirect_id, rev)
    return MessageResponse(success=True)


@router.post("/{geodirect_id}/log", response_model=LoggedPromptDoc, status_code=201)
async def log_prompt(
    geodirect_id: str,
    body: LogPromptRequest,
    accounts: Annotated[AccountRepository, Depends(get_account_repository)],
    meter: Annotated[UsageMeter, Depends(get_usage_meter)],
) -> LoggedPromptDoc:
    account = await accounts.get_by_shop_id(body.shop_id)
    return await meter.record_prompt(account, geodirect_id, body.geodirect_revision)
