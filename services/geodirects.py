"""
Tenant-scoped geodirect CRUD.

Writes carry the revision the caller read. A stale revision surfaces as
ConflictError; re-fetching and retrying is the caller's call. A geodirect
owned by another shop is reported as not found.
"""

from __future__ import annotations

from errors import AppError, NotFoundError
from infrastructure.couchdb.protocol import DocumentStore
from schemas.dto.requests.geodirect import CreateGeodirectRequest
from schemas.models.geodirect import GeodirectDoc
from services.prompt_logs import PromptLogManager
from shared.logging import get_logger

log = get_logger(__name__)


class GeodirectService:
    def __init__(self, store: DocumentStore, prompt_logs: PromptLogManager) -> None:
        self._store = store
        self._logs = prompt_logs

    async def list_for_tenant(
        self, tenant_id: int, *, with_hits: bool = False
    ) -> list[GeodirectDoc]:
        docs = await self._store.find({"tenant_id": tenant_id})
        geodirects = [GeodirectDoc.from_couch(doc) for doc in docs]

        if with_hits:
            counts = await self._logs.count_by_rule(tenant_id)
            for geodirect in geodirects:
                geodirect.hit_count = counts.get(geodirect.id, 0)
        return geodirects

    async def get(self, tenant_id: int, geodirect_id: str) -> GeodirectDoc:
        geodirect = GeodirectDoc.from_couch(await self._store.get(geodirect_id))
        if geodirect.tenant_id != tenant_id:
            raise NotFoundError(
                f"No geodirect with id of {geodirect_id} belonging to shop id {tenant_id}."
            )
        return geodirect

    async def create(self, tenant_id: int, request: CreateGeodirectRequest) -> GeodirectDoc:
        geodirect = GeodirectDoc(tenant_id=tenant_id, **request.model_dump())
        doc = await self._store.create(geodirect.to_couch())
        log.info(
            "geodirect_created",
            shop_id=tenant_id,
            geodirect_id=doc["_id"],
            country_code=geodirect.country_code,
        )

        # The rule is saved either way; the log database is retried on first prompt
        try:
            await self._logs.prepare(tenant_id)
        except AppError as e:
            log.error(
                "prompt_log_prepare_failed",
                shop_id=tenant_id,
                error=e.message,
                error_code=e.error_code,
            )
        return GeodirectDoc.from_couch(doc)

    async def update(
        self, tenant_id: int, geodirect_id: str, changes: dict, revision: str
    ) -> GeodirectDoc:
        current = await self.get(tenant_id, geodirect_id)
        merged = {**current.to_couch(), **changes, "tenant_id": tenant_id}
        doc = await self._store.update(geodirect_id, merged, revision)
        log.info("geodirect_updated", shop_id=tenant_id, geodirect_id=geodirect_id)
        return GeodirectDoc.from_couch(doc)

    async def delete(self, tenant_id: int, geodirect_id: str, revision: str) -> None:
        await self.get(tenant_id, geodirect_id)
        await self._store.delete(geodirect_id, revision)
        log.info("geodirect_deleted", shop_id=tenant_id, geodirect_id=geodirect_id)
