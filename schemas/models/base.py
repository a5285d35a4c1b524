"""
Base model for all CouchDB document models.

CouchDB stores the document id as ``_id`` and the revision token as ``_rev``.
CouchBaseModel exposes them as ``id`` / ``revision`` and provides
to_couch() / from_couch() for round-tripping between Python objects and raw
CouchDB dicts.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CouchBaseModel(BaseModel):
    """
    Base for all document models.

    to_couch()   - converts model → dict suitable for a CouchDB write
    from_couch() - converts raw CouchDB dict → model instance (returns None
                    gracefully when passed None)
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, alias="_id")
    revision: Optional[str] = Field(default=None, alias="_rev")

    def to_couch(self) -> dict:
        """Return a dict ready for CouchDB.

        ``_id`` and ``_rev`` are dropped when unset so the server assigns them.
        """
        data = self.model_dump(by_alias=True, exclude_none=False)
        for reserved in ("_id", "_rev"):
            if data.get(reserved) is None:
                data.pop(reserved, None)
        return data

    @classmethod
    def from_couch(cls, data: Optional[dict]) -> Optional["CouchBaseModel"]:
        if data is None:
            return None
        return cls.model_validate(data)
