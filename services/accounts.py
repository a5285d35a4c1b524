"""Read access to tenant accounts in the users database."""

from __future__ import annotations

from errors import NotFoundError
from infrastructure.couchdb.protocol import DocumentStore
from schemas.models.account import TenantAccountDoc


class AccountRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get_by_shop_id(self, shop_id: int) -> TenantAccountDoc:
        docs = await self._store.find({"shop_id": shop_id}, limit=1)
        if not docs:
            raise NotFoundError(f"No account for shop id {shop_id}.", field="shop_id")
        return TenantAccountDoc.from_couch(docs[0])
