"""
View query options, results and code-declared view definitions.

A ViewDefinition is compared against the stored design document by its
structural tag (explicit version plus a digest of the whitespace-normalised
sources), so reformatting a map function never triggers a resync on its own.
"""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

_WHITESPACE = re.compile(r"\s+")


@dataclass
class ViewOptions:
    """Query-string options for GET /{db}/_design/{doc}/_view/{view}.

    ``reduce=True`` without ``group``/``group_level`` collapses every key into
    a single aggregate row; ask for grouping to get per-key totals.
    """

    reduce: Optional[bool] = None
    group: Optional[bool] = None
    group_level: Optional[int] = None
    key: Any = None
    start_key: Any = None
    end_key: Any = None
    inclusive_end: Optional[bool] = None
    descending: Optional[bool] = None
    include_docs: Optional[bool] = None
    limit: Optional[int] = None
    skip: Optional[int] = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        # CouchDB parses key parameters as JSON
        for name in ("key", "start_key", "end_key"):
            value = getattr(self, name)
            if value is not None:
                params[name] = json.dumps(value)
        for name in ("reduce", "group", "inclusive_end", "descending", "include_docs"):
            value = getattr(self, name)
            if value is not None:
                params[name] = "true" if value else "false"
        for name in ("group_level", "limit", "skip"):
            value = getattr(self, name)
            if value is not None:
                params[name] = str(value)
        return params


@dataclass
class ViewResult:
    """Rows returned by a view query.

    Reduced queries carry no ``total_rows``/``offset``.
    """

    rows: list[dict] = field(default_factory=list)
    total_rows: Optional[int] = None
    offset: Optional[int] = None

    @classmethod
    def from_response(cls, body: dict) -> "ViewResult":
        return cls(
            rows=body.get("rows", []),
            total_rows=body.get("total_rows"),
            offset=body.get("offset"),
        )


@dataclass(frozen=True)
class ViewDefinition:
    design_doc_name: str
    view_name: str
    map: str
    reduce: Optional[str] = None
    version: int = 1

    @property
    def design_doc_id(self) -> str:
        return f"_design/{self.design_doc_name}"

    @property
    def tag(self) -> str:
        digest = hashlib.sha256()
        for source in (self.map, self.reduce or ""):
            digest.update(_WHITESPACE.sub(" ", source).strip().encode())
            digest.update(b"\x00")
        return f"{self.version}:{digest.hexdigest()[:16]}"

    def to_design_view(self) -> dict[str, str]:
        view = {"map": self.map}
        if self.reduce is not None:
            view["reduce"] = self.reduce
        return view
