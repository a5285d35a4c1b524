"""DocumentStore protocol - services depend on this, not the CouchDB implementation."""

from typing import Any, Optional, Protocol, runtime_checkable

from infrastructure.couchdb.views import ViewOptions, ViewResult


@runtime_checkable
class DocumentStore(Protocol):
    name: str

    async def get(self, doc_id: str, revision: Optional[str] = None) -> dict: ...

    async def create(self, doc: dict) -> dict: ...

    async def update(self, doc_id: str, doc: dict, expected_revision: str) -> dict: ...

    async def delete(self, doc_id: str, expected_revision: str) -> None: ...

    async def exists(self, doc_id: str) -> bool: ...

    async def find(
        self,
        selector: dict[str, Any],
        *,
        fields: Optional[list[str]] = None,
        sort: Optional[list[Any]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[dict]: ...

    async def query_view(
        self,
        design_doc: str,
        view_name: str,
        options: Optional[ViewOptions] = None,
    ) -> ViewResult: ...
