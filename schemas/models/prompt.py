"""
LoggedPrompt document model.

Maps to a shop's `{app}_shop_{id}_logs` database. Append-only: prompts are
never updated or deleted once written.
"""

from __future__ import annotations

from schemas.models.base import CouchBaseModel


class LoggedPromptDoc(CouchBaseModel):
    geodirect_id: str
    # Revision of the rule when it fired, kept for auditing
    geodirect_revision: str
    tenant_id: int
    # Epoch milliseconds, stamped on receipt
    timestamp: int
