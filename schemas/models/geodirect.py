"""
Geodirect document model.

Maps to the `{app}_geodirections` CouchDB database. One document per redirect
rule. ``hit_count`` is advisory; the authoritative count comes from the
shop's prompt log views.
"""

from __future__ import annotations

from pydantic import Field

from schemas.models.base import CouchBaseModel


class GeodirectDoc(CouchBaseModel):
    tenant_id: int
    country_code: str = Field(min_length=2, max_length=2)
    target_url: str
    message: str
    hit_count: int = 0
