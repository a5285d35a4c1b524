"""
Async CouchDB client.

CouchClient is the server-level handle (database provisioning, Mango indexes,
version check). CouchDatabase performs document CRUD, selector queries and
view queries against one named database.

Every write carries a revision token; a stale one comes back as
ConflictError. Nothing here retries: the caller decides whether re-fetching
and writing again is safe.

Status mapping:
  transport error / 5xx → StoreUnavailable
  404                   → NotFoundError (``exists`` returns False instead)
  409                   → ConflictError
  other non-2xx         → StoreError
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from errors import ConflictError, NotFoundError, StoreError, StoreUnavailable
from infrastructure.couchdb.views import ViewOptions, ViewResult
from infrastructure.http_client import HttpClient
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

_DESIGN_PREFIX = "_design/"


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text[:200]


async def _send(
    http: HttpClient,
    method: str,
    url: str,
    *,
    database: str,
    action: str,
    **kwargs: Any,
) -> httpx.Response:
    try:
        return await http.request(method, url, **kwargs)
    except httpx.TransportError as e:
        log.error(
            "couchdb_transport_error",
            database=database,
            action=action,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise StoreUnavailable(
            f"CouchDB is unreachable while {action} in database {database}."
        ) from e


def _raise_for_status(response: httpx.Response, *, database: str, action: str) -> None:
    if response.is_success:
        return

    status = response.status_code
    message = (
        f"Error {action} document(s) for CouchDB database {database}. "
        f"{status} {response.reason_phrase}"
    )
    if status == 404:
        raise NotFoundError(message)
    if status == 409:
        raise ConflictError(message)

    body = _response_body(response)
    log.error(
        "couchdb_request_failed",
        database=database,
        action=action,
        status_code=status,
        response=body,
    )
    if status >= 500:
        raise StoreUnavailable(message, details=body)
    raise StoreError(message, details=body)


class CouchDatabase:
    """Document operations against a single CouchDB database."""

    def __init__(self, http: HttpClient, server_url: str, name: str) -> None:
        self._http = http
        self.name = name
        self._url = f"{server_url.rstrip('/')}/{quote(name, safe='')}"

    def _doc_url(self, doc_id: str) -> str:
        if doc_id.startswith(_DESIGN_PREFIX):
            return f"{self._url}/{_DESIGN_PREFIX}{quote(doc_id[len(_DESIGN_PREFIX):], safe='')}"
        return f"{self._url}/{quote(doc_id, safe='')}"

    async def _request(self, method: str, url: str, action: str, **kwargs: Any) -> Any:
        response = await _send(
            self._http, method, url, database=self.name, action=action, **kwargs
        )
        _raise_for_status(response, database=self.name, action=action)
        return _response_body(response)

    async def get(self, doc_id: str, revision: Optional[str] = None) -> dict:
        """Fetch a document. Without ``revision`` the current one is returned."""
        params = {"rev": revision} if revision else None
        return await self._request("GET", self._doc_url(doc_id), "getting", params=params)

    async def create(self, doc: dict) -> dict:
        """Insert a document; the server assigns ``_id`` when absent.

        Posting an existing ``_id`` without its current ``_rev`` conflicts.
        """
        body = await self._request("POST", self._url, "posting", json=doc)
        # CouchDB answers with {ok, id, rev}, not the document itself
        return {**doc, "_id": body["id"], "_rev": body["rev"]}

    async def update(self, doc_id: str, doc: dict, expected_revision: str) -> dict:
        payload = {k: v for k, v in doc.items() if k not in ("_id", "_rev")}
        body = await self._request(
            "PUT",
            self._doc_url(doc_id),
            "putting",
            params={"rev": expected_revision},
            json=payload,
        )
        return {**payload, "_id": body["id"], "_rev": body["rev"]}

    async def delete(self, doc_id: str, expected_revision: str) -> None:
        await self._request(
            "DELETE",
            self._doc_url(doc_id),
            "deleting",
            params={"rev": expected_revision},
        )

    async def exists(self, doc_id: str) -> bool:
        try:
            await self._request("HEAD", self._doc_url(doc_id), "checking")
        except NotFoundError:
            return False
        return True

    async def find(
        self,
        selector: dict[str, Any],
        *,
        fields: Optional[list[str]] = None,
        sort: Optional[list[Any]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[dict]:
        """Run a Mango selector query via POST /{db}/_find."""
        query: dict[str, Any] = {"selector": selector}
        if fields is not None:
            query["fields"] = fields
        if sort is not None:
            query["sort"] = sort
        if limit is not None:
            query["limit"] = limit
        if skip is not None:
            query["skip"] = skip

        body = await self._request("POST", f"{self._url}/_find", "finding", json=query)
        if body.get("warning"):
            log.warning("couchdb_find_warning", database=self.name, warning=body["warning"])
        return body["docs"]

    async def list_docs(
        self,
        *,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
        descending: bool = False,
    ) -> list[dict]:
        """List documents from _all_docs, skipping design documents."""
        params: dict[str, str] = {"include_docs": "true"}
        if limit is not None:
            params["limit"] = str(limit)
        if skip is not None:
            params["skip"] = str(skip)
        if descending:
            params["descending"] = "true"

        body = await self._request("GET", f"{self._url}/_all_docs", "listing", params=params)
        return [
            row["doc"]
            for row in body["rows"]
            if not row["id"].startswith(_DESIGN_PREFIX)
        ]

    async def count(self) -> int:
        """Number of documents in the database, design documents included."""
        body = await self._request(
            "GET", f"{self._url}/_all_docs", "counting", params={"limit": "0"}
        )
        return body["total_rows"]

    async def query_view(
        self,
        design_doc: str,
        view_name: str,
        options: Optional[ViewOptions] = None,
    ) -> ViewResult:
        options = options or ViewOptions()
        url = f"{self._url}/_design/{quote(design_doc, safe='')}/_view/{quote(view_name, safe='')}"
        body = await self._request("GET", url, "viewing", params=options.to_params())

        if should_sample("view_query"):
            log.debug(
                "couchdb_view_queried",
                database=self.name,
                view=f"{design_doc}/{view_name}",
                rows=len(body.get("rows", [])),
            )
        return ViewResult.from_response(body)


class CouchClient:
    """Server-level CouchDB handle. Owns the HTTP transport."""

    def __init__(self, server_url: str, http_client: HttpClient) -> None:
        self.server_url = server_url.rstrip("/")
        self._http = http_client

    def database(self, name: str) -> CouchDatabase:
        return CouchDatabase(self._http, self.server_url, name)

    async def info(self) -> dict:
        response = await _send(
            self._http, "GET", self.server_url, database="-", action="connecting"
        )
        _raise_for_status(response, database="-", action="connecting")
        return response.json()

    async def check_version(self) -> str:
        """Return the server version, warning when it predates CouchDB 2.0."""
        version = str((await self.info()).get("version", "0"))
        try:
            major = int(version.split(".")[0])
        except ValueError:
            major = 0
        if major < 2:
            log.warning(
                "couchdb_version_unsupported",
                version=version,
                detail="selector queries and Mango indexes need CouchDB 2.0+",
            )
        return version

    async def create_database(self, name: str) -> bool:
        """Create a database. Returns False when it already exists."""
        url = f"{self.server_url}/{quote(name, safe='')}"
        response = await _send(self._http, "PUT", url, database=name, action="creating")
        if response.status_code == 412:
            return False
        _raise_for_status(response, database=name, action="creating")
        log.info("couchdb_database_created", database=name)
        return True

    async def create_index(self, database: str, fields: list[str], name: str) -> None:
        url = f"{self.server_url}/{quote(database, safe='')}/_index"
        response = await _send(
            self._http,
            "POST",
            url,
            database=database,
            action="indexing",
            json={"index": {"fields": fields}, "name": name},
        )
        _raise_for_status(response, database=database, action="indexing")

    async def aclose(self) -> None:
        await self._http.aclose()
