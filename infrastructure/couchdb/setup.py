"""
Provisioning of the shared databases at startup.

Each database is created if missing and given one Mango index over the
fields it is queried by. Failures are logged; the app still boots and
requests against a missing database fail with a store error.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from errors import AppError
from infrastructure.couchdb.client import CouchClient
from shared.logging import get_logger
from shared.naming import snake_case

log = get_logger(__name__)


@dataclass(frozen=True)
class DatabaseInfo:
    name: str
    indexes: list[str] = field(default_factory=list)


def users_database(app_name: str) -> DatabaseInfo:
    return DatabaseInfo(name=f"{snake_case(app_name)}_users", indexes=["shop_id"])


def geodirects_database(app_name: str) -> DatabaseInfo:
    return DatabaseInfo(name=f"{snake_case(app_name)}_geodirections", indexes=["tenant_id"])


async def configure_database(couch: CouchClient, info: DatabaseInfo) -> bool:
    """Create ``info.name`` and its index. Returns False if anything failed."""
    try:
        await couch.create_database(info.name)
    except AppError as e:
        log.error("couchdb_database_setup_failed", database=info.name, error=e.message)
        return False

    if not info.indexes:
        return True
    try:
        await couch.create_index(info.name, info.indexes, f"{info.name}-indexes")
    except AppError as e:
        log.error(
            "couchdb_index_setup_failed",
            database=info.name,
            fields=info.indexes,
            error=e.message,
        )
        return False
    return True


async def configure_databases(couch: CouchClient, app_name: str) -> None:
    await couch.check_version()
    for info in (users_database(app_name), geodirects_database(app_name)):
        await configure_database(couch, info)
