"""
Per-shop prompt log databases.

Every shop gets its own CouchDB database, named from the app name and the
shop id, holding its LoggedPrompt documents and the two counting views. The
database is provisioned lazily: on the shop's first geodirect, or on its
first logged prompt in this process. It is never deleted here.

Counts always come from the views. ``_prepared`` only remembers which shops
were fully provisioned by this process so ``append`` can skip
re-provisioning; it never holds a count.
"""

from __future__ import annotations

from typing import Optional

from errors import NotFoundError
from infrastructure.couchdb.client import CouchClient, CouchDatabase
from infrastructure.couchdb.design import sync_views
from infrastructure.couchdb.prompt_views import (
    COUNT_BY_GEODIRECT,
    COUNT_BY_TIMESTAMP,
    DESIGN_DOC_NAME,
    PROMPT_LOG_VIEWS,
)
from infrastructure.couchdb.views import ViewOptions
from schemas.models.prompt import LoggedPromptDoc
from shared.datetime_utils import now_ms
from shared.logging import get_logger, should_sample
from shared.naming import snake_case

log = get_logger(__name__)


class PromptLogManager:
    def __init__(self, couch: CouchClient, app_name: str) -> None:
        self._couch = couch
        self._prefix = snake_case(app_name)
        self._prepared: set[int] = set()

    def database_name(self, tenant_id: int) -> str:
        return f"{self._prefix}_shop_{tenant_id}_logs"

    def database(self, tenant_id: int) -> CouchDatabase:
        return self._couch.database(self.database_name(tenant_id))

    async def prepare(self, tenant_id: int) -> None:
        """Create the shop's log database if needed and sync its views.

        An existing database is fine. View sync failures are logged and do
        not fail this call, but the shop is only remembered as prepared once
        every view is in sync, so the next append tries again.
        """
        name = self.database_name(tenant_id)
        created = await self._couch.create_database(name)
        report = await sync_views(self._couch.database(name), PROMPT_LOG_VIEWS)
        if report.complete:
            self._prepared.add(tenant_id)
        log.info(
            "prompt_log_prepared",
            shop_id=tenant_id,
            database=name,
            created=created,
            views_written=report.writes,
            views_failed=report.failed,
        )

    async def append(
        self,
        tenant_id: int,
        geodirect_id: str,
        geodirect_revision: str,
        *,
        timestamp: Optional[int] = None,
    ) -> LoggedPromptDoc:
        """Append one prompt. ``timestamp`` defaults to the time of receipt."""
        if tenant_id not in self._prepared:
            await self.prepare(tenant_id)

        prompt = LoggedPromptDoc(
            geodirect_id=geodirect_id,
            geodirect_revision=geodirect_revision,
            tenant_id=tenant_id,
            timestamp=timestamp if timestamp is not None else now_ms(),
        )
        doc = await self.database(tenant_id).create(prompt.to_couch())

        if should_sample("prompt_logged"):
            log.info(
                "prompt_logged",
                shop_id=tenant_id,
                geodirect_id=geodirect_id,
                prompt_id=doc["_id"],
            )
        return LoggedPromptDoc.from_couch(doc)

    async def count_since(self, tenant_id: int, timestamp: int) -> int:
        """Number of prompts with ``timestamp`` at or after the given epoch ms."""
        try:
            result = await self.database(tenant_id).query_view(
                DESIGN_DOC_NAME,
                COUNT_BY_TIMESTAMP,
                ViewOptions(reduce=True, start_key=timestamp),
            )
        except NotFoundError:
            # No database or view yet: nothing has been counted
            log.warning("prompt_count_view_missing", shop_id=tenant_id, view=COUNT_BY_TIMESTAMP)
            return 0

        if not result.rows:
            return 0
        return int(result.rows[0]["value"])

    async def count_by_rule(self, tenant_id: int) -> dict[str, int]:
        """Prompt counts per geodirect id, across the shop's whole log."""
        try:
            result = await self.database(tenant_id).query_view(
                DESIGN_DOC_NAME,
                COUNT_BY_GEODIRECT,
                ViewOptions(reduce=True, group=True),
            )
        except NotFoundError:
            log.warning("prompt_count_view_missing", shop_id=tenant_id, view=COUNT_BY_GEODIRECT)
            return {}

        counts: dict[str, int] = {}
        for row in result.rows:
            for geodirect_id, count in row["value"].items():
                counts[geodirect_id] = counts.get(geodirect_id, 0) + int(count)
        return counts
