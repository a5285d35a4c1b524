"""
Shared fixtures: an in-process CouchDB served through httpx.MockTransport.

FakeCouchDB implements the slice of the CouchDB HTTP API the service uses:
database creation, revisioned document CRUD, _find with equality selectors,
_index, _all_docs and view queries. Views run the Python map/reduce twins
from infrastructure.couchdb.prompt_views; reduced queries split the values
into small chunks and combine them with a rereduce pass, as CouchDB does.
"""

import itertools
import json
import uuid
from typing import Any, Callable, Optional
from urllib.parse import unquote

import httpx
import pytest

from infrastructure.couchdb.client import CouchClient
from infrastructure.couchdb.prompt_views import PYTHON_VIEWS
from infrastructure.http_client import HttpClient

COUCH_URL = "http://couch.test:5984"


def _json(status: int, body: Any) -> httpx.Response:
    return httpx.Response(status, json=body)


class FakeCouchDB:
    def __init__(
        self,
        python_views: Optional[dict[str, tuple[Callable, Callable]]] = None,
        *,
        version: str = "3.3.3",
        rereduce_chunk: int = 3,
    ) -> None:
        self.databases: dict[str, dict[str, dict]] = {}
        self.requests: list[httpx.Request] = []
        self.python_views = python_views if python_views is not None else PYTHON_VIEWS
        self.version = version
        self.rereduce_chunk = rereduce_chunk
        self._faults: list[dict] = []

    # ── Test helpers ─────────────────────────────────────────────────────────

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def inject_fault(
        self, method: str, path_contains: str, status: Optional[int], times: int = 1
    ) -> None:
        """Fail matching requests with ``status`` (None raises ConnectError)."""
        self._faults.append(
            {"method": method, "path": path_contains, "status": status, "times": times}
        )

    def writes(self, path_contains: str = "") -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method in ("PUT", "POST", "DELETE")
            and path_contains in unquote(r.url.raw_path.decode())
        ]

    def docs(self, database: str) -> list[dict]:
        return [
            doc
            for doc_id, doc in sorted(self.databases[database].items())
            if not doc_id.startswith("_design/")
        ]

    # ── Request dispatch ─────────────────────────────────────────────────────

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        raw_path = request.url.raw_path.decode().split("?")[0]
        parts = [unquote(p) for p in raw_path.strip("/").split("/") if p]

        for fault in self._faults:
            if (
                fault["times"] > 0
                and fault["method"] == request.method
                and fault["path"] in "/".join(parts)
            ):
                fault["times"] -= 1
                if fault["status"] is None:
                    raise httpx.ConnectError("connection refused", request=request)
                return _json(fault["status"], {"error": "injected"})

        params = dict(request.url.params)
        if not parts:
            return _json(200, {"couchdb": "Welcome", "version": self.version})

        db_name, rest = parts[0], parts[1:]
        if not rest:
            return self._database(request, db_name)

        db = self.databases.get(db_name)
        if db is None:
            return _json(404, {"error": "not_found", "reason": "Database does not exist."})

        if rest == ["_find"]:
            return self._find(db, json.loads(request.content))
        if rest == ["_index"]:
            return _json(200, {"result": "created"})
        if rest == ["_all_docs"]:
            return self._all_docs(db, params)
        if len(rest) == 4 and rest[0] == "_design" and rest[2] == "_view":
            return self._view(db, rest[1], rest[3], params)

        doc_id = "/".join(rest)
        return self._document(request, db, doc_id, params)

    def _database(self, request: httpx.Request, name: str) -> httpx.Response:
        if request.method == "PUT":
            if name in self.databases:
                return _json(412, {"error": "file_exists"})
            self.databases[name] = {}
            return _json(201, {"ok": True})
        if name not in self.databases:
            return _json(404, {"error": "not_found"})
        if request.method == "POST":
            body = json.loads(request.content)
            return self._write(self.databases[name], body.get("_id"), body, body.get("_rev"))
        return _json(200, {"db_name": name, "doc_count": len(self.databases[name])})

    def _document(
        self, request: httpx.Request, db: dict, doc_id: str, params: dict
    ) -> httpx.Response:
        current = db.get(doc_id)
        if request.method in ("GET", "HEAD"):
            if current is None or ("rev" in params and params["rev"] != current["_rev"]):
                return _json(404, {"error": "not_found", "reason": "missing"})
            if request.method == "HEAD":
                return httpx.Response(200)
            return _json(200, current)
        if request.method == "PUT":
            body = json.loads(request.content)
            return self._write(db, doc_id, body, params.get("rev"))
        if request.method == "DELETE":
            if current is None:
                return _json(404, {"error": "not_found"})
            if params.get("rev") != current["_rev"]:
                return _json(409, {"error": "conflict"})
            del db[doc_id]
            return _json(200, {"ok": True, "id": doc_id, "rev": self._next_rev(current["_rev"])})
        return _json(405, {"error": "method_not_allowed"})

    def _next_rev(self, rev: Optional[str]) -> str:
        generation = int(rev.split("-")[0]) + 1 if rev else 1
        return f"{generation}-{uuid.uuid4().hex}"

    def _write(
        self, db: dict, doc_id: Optional[str], body: dict, rev: Optional[str]
    ) -> httpx.Response:
        doc_id = doc_id or uuid.uuid4().hex
        current = db.get(doc_id)
        if current is not None and rev != current["_rev"]:
            return _json(409, {"error": "conflict", "reason": "Document update conflict."})
        if current is None and rev is not None:
            return _json(409, {"error": "conflict"})
        new_rev = self._next_rev(current["_rev"] if current else None)
        db[doc_id] = {**body, "_id": doc_id, "_rev": new_rev}
        return _json(201, {"ok": True, "id": doc_id, "rev": new_rev})

    def _find(self, db: dict, query: dict) -> httpx.Response:
        selector = query["selector"]
        docs = [
            doc
            for doc_id, doc in sorted(db.items())
            if not doc_id.startswith("_design/")
            and all(doc.get(field) == value for field, value in selector.items())
        ]
        if "limit" in query:
            docs = docs[: query["limit"]]
        return _json(200, {"docs": docs})

    def _all_docs(self, db: dict, params: dict) -> httpx.Response:
        rows = [
            {"id": doc_id, "key": doc_id, "value": {"rev": doc["_rev"]}, "doc": doc}
            for doc_id, doc in sorted(db.items())
        ]
        if params.get("include_docs") != "true":
            for row in rows:
                row.pop("doc")
        total = len(rows)
        if "limit" in params:
            rows = rows[: int(params["limit"])]
        return _json(200, {"total_rows": total, "offset": 0, "rows": rows})

    def _reduce(self, reduce_fn: Callable, keys: list, values: list) -> Any:
        chunks = [
            (keys[i : i + self.rereduce_chunk], values[i : i + self.rereduce_chunk])
            for i in range(0, len(values), self.rereduce_chunk)
        ]
        partials = [reduce_fn(k, v, False) for k, v in chunks]
        if len(partials) == 1:
            return partials[0]
        return reduce_fn(None, partials, True)

    def _view(self, db: dict, ddoc: str, view_name: str, params: dict) -> httpx.Response:
        design = db.get(f"_design/{ddoc}")
        if design is None or view_name not in design.get("views", {}):
            return _json(404, {"error": "not_found", "reason": "missing_named_view"})

        map_fn, reduce_fn = self.python_views[view_name]
        emitted = sorted(
            (
                (key, doc_id, value)
                for doc_id, doc in db.items()
                if not doc_id.startswith("_design/")
                for key, value in map_fn(doc)
            ),
            key=lambda row: (row[0], row[1]),
        )
        total_rows = len(emitted)
        if "key" in params:
            wanted = json.loads(params["key"])
            emitted = [row for row in emitted if row[0] == wanted]
        if "start_key" in params:
            start = json.loads(params["start_key"])
            emitted = [row for row in emitted if row[0] >= start]
        if "end_key" in params:
            end = json.loads(params["end_key"])
            emitted = [row for row in emitted if row[0] <= end]

        reduce = params.get("reduce", "true") == "true" and "reduce" in design["views"][view_name]
        if not reduce:
            rows = [{"id": doc_id, "key": key, "value": value} for key, doc_id, value in emitted]
            return _json(200, {"total_rows": total_rows, "offset": 0, "rows": rows})

        if params.get("group") == "true":
            rows = []
            for key, group in itertools.groupby(emitted, key=lambda row: row[0]):
                group = list(group)
                value = self._reduce(
                    reduce_fn, [[k, d] for k, d, _ in group], [v for _, _, v in group]
                )
                rows.append({"key": key, "value": value})
            return _json(200, {"rows": rows})

        if not emitted:
            return _json(200, {"rows": []})
        value = self._reduce(
            reduce_fn, [[k, d] for k, d, _ in emitted], [v for _, _, v in emitted]
        )
        return _json(200, {"rows": [{"key": None, "value": value}]})


@pytest.fixture
def couch_server() -> FakeCouchDB:
    return FakeCouchDB()


@pytest.fixture
async def couch(couch_server):
    client = CouchClient(COUCH_URL, HttpClient(transport=couch_server.transport()))
    yield client
    await client.aclose()


@pytest.fixture
async def store(couch, couch_server):
    """An empty ``scratch`` database."""
    await couch.create_database("scratch")
    return couch.database("scratch")
