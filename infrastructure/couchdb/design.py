"""
Design-document synchronizer.

ensure_views() and sync_views() make the views stored in a database match the
ViewDefinitions declared in code. Each view is checked on its own: fetch its
design document (a missing one starts out empty), compare the stored
structural tag and write the merged document back only on mismatch.

Sync is best-effort. A failing view is logged as ViewSyncFailed and its
siblings are still synced; callers never see the exception. sync_views()
reports which views failed so callers can try again later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from errors import AppError, NotFoundError, ViewSyncFailed
from infrastructure.couchdb.protocol import DocumentStore
from infrastructure.couchdb.views import ViewDefinition
from shared.logging import get_logger

log = get_logger(__name__)

# Design-doc field holding {view_name: tag} for the views synced by this module
VIEW_VERSIONS_FIELD = "view_versions"


def empty_design_doc(design_doc_name: str) -> dict:
    return {
        "_id": f"_design/{design_doc_name}",
        "language": "javascript",
        "views": {},
    }


def needs_sync(design_doc: dict, view: ViewDefinition) -> bool:
    if view.view_name not in design_doc.get("views", {}):
        return True
    stored_tag = design_doc.get(VIEW_VERSIONS_FIELD, {}).get(view.view_name)
    return stored_tag != view.tag


async def _load_design_doc(store: DocumentStore, view: ViewDefinition) -> dict:
    try:
        return await store.get(view.design_doc_id)
    except NotFoundError:
        return empty_design_doc(view.design_doc_name)


async def _sync_view(store: DocumentStore, view: ViewDefinition) -> bool:
    try:
        doc = await _load_design_doc(store, view)
        if not needs_sync(doc, view):
            return False

        doc.setdefault("views", {})[view.view_name] = view.to_design_view()
        doc.setdefault(VIEW_VERSIONS_FIELD, {})[view.view_name] = view.tag

        if "_rev" in doc:
            await store.update(view.design_doc_id, doc, doc["_rev"])
        else:
            await store.create(doc)
    except AppError as e:
        raise ViewSyncFailed(
            f"Could not sync view {view.design_doc_name}/{view.view_name} "
            f"in database {store.name}.",
            details={"error": e.message, "code": e.error_code},
        ) from e
    return True


@dataclass
class ViewSyncReport:
    """Outcome of one sync pass: view names written and view names that failed."""

    written: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def writes(self) -> int:
        return len(self.written)

    @property
    def complete(self) -> bool:
        return not self.failed


async def sync_views(store: DocumentStore, views: Iterable[ViewDefinition]) -> ViewSyncReport:
    """Sync each declared view into ``store`` and report what happened per view."""
    report = ViewSyncReport()
    for view in views:
        try:
            if await _sync_view(store, view):
                report.written.append(view.view_name)
                log.info(
                    "couchdb_view_synced",
                    database=store.name,
                    design_doc=view.design_doc_name,
                    view=view.view_name,
                    tag=view.tag,
                )
        except ViewSyncFailed as e:
            report.failed.append(view.view_name)
            log.error(
                "couchdb_view_sync_failed",
                database=store.name,
                design_doc=view.design_doc_name,
                view=view.view_name,
                error=e.message,
                details=e.details,
            )
    return report


async def ensure_views(store: DocumentStore, views: Iterable[ViewDefinition]) -> int:
    """Sync each declared view into ``store``. Returns the number of writes."""
    return (await sync_views(store, views)).writes
