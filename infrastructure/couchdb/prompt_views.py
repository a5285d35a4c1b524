"""
Aggregation views over a shop's prompt log.

CouchDB may call a reduce function over leaf values (``rereduce`` false) or
over earlier reduce outputs (``rereduce`` true). The two inputs differ in
shape, so both reduce functions handle each mode separately:

  count-by-timestamp  leaf: number of values    rereduce: sum of counts
  count-by-geodirect  leaf: {geodirect_id: n}   rereduce: per-id sums

The JavaScript sources are what CouchDB runs; the Python functions below
compute the same results and are used where views are evaluated in-process.
"""

from __future__ import annotations

from typing import Any, Optional

from infrastructure.couchdb.views import ViewDefinition

DESIGN_DOC_NAME = "list"
COUNT_BY_TIMESTAMP = "count-by-timestamp"
COUNT_BY_GEODIRECT = "count-by-geodirect"

_COUNT_BY_TIMESTAMP_MAP = """
function (doc) {
    if (typeof doc.timestamp === "number") {
        emit(doc.timestamp, null);
    }
}
"""

_COUNT_BY_TIMESTAMP_REDUCE = """
function (keys, values, rereduce) {
    if (rereduce) {
        return sum(values);
    }

    return values.length;
}
"""

_COUNT_BY_GEODIRECT_MAP = """
function (doc) {
    if (doc.geodirect_id) {
        emit(doc.geodirect_id, doc.geodirect_id);
    }
}
"""

_COUNT_BY_GEODIRECT_REDUCE = """
function (keys, values, rereduce) {
    var output = {};

    if (!rereduce) {
        values.forEach(function (id) {
            output[id] = (output[id] || 0) + 1;
        });

        return output;
    }

    values.forEach(function (partial) {
        Object.keys(partial).forEach(function (id) {
            output[id] = (output[id] || 0) + partial[id];
        });
    });

    return output;
}
"""

COUNT_BY_TIMESTAMP_VIEW = ViewDefinition(
    design_doc_name=DESIGN_DOC_NAME,
    view_name=COUNT_BY_TIMESTAMP,
    map=_COUNT_BY_TIMESTAMP_MAP,
    reduce=_COUNT_BY_TIMESTAMP_REDUCE,
    version=1,
)

COUNT_BY_GEODIRECT_VIEW = ViewDefinition(
    design_doc_name=DESIGN_DOC_NAME,
    view_name=COUNT_BY_GEODIRECT,
    map=_COUNT_BY_GEODIRECT_MAP,
    reduce=_COUNT_BY_GEODIRECT_REDUCE,
    version=1,
)

PROMPT_LOG_VIEWS = (COUNT_BY_TIMESTAMP_VIEW, COUNT_BY_GEODIRECT_VIEW)


def map_count_by_timestamp(doc: dict) -> list[tuple[Any, Any]]:
    if isinstance(doc.get("timestamp"), (int, float)):
        return [(doc["timestamp"], None)]
    return []


def reduce_count(keys: Optional[list], values: list, rereduce: bool) -> int:
    if rereduce:
        return sum(values)
    return len(values)


def map_count_by_geodirect(doc: dict) -> list[tuple[Any, Any]]:
    if doc.get("geodirect_id"):
        return [(doc["geodirect_id"], doc["geodirect_id"])]
    return []


def reduce_count_by_geodirect(
    keys: Optional[list], values: list, rereduce: bool
) -> dict[str, int]:
    output: dict[str, int] = {}
    if not rereduce:
        for geodirect_id in values:
            output[geodirect_id] = output.get(geodirect_id, 0) + 1
        return output

    for partial in values:
        for geodirect_id, count in partial.items():
            output[geodirect_id] = output.get(geodirect_id, 0) + count
    return output


# view name → (map, reduce), for in-process evaluation
PYTHON_VIEWS = {
    COUNT_BY_TIMESTAMP: (map_count_by_timestamp, reduce_count),
    COUNT_BY_GEODIRECT: (map_count_by_geodirect, reduce_count_by_geodirect),
}
