"""
Tenant account document model.

Maps to the `{app}_users` CouchDB database. Holds what the billing trigger
needs to talk to the shop's commerce platform: the shop domain, its access
token and the active recurring charge.
"""

from __future__ import annotations

from typing import Optional

from schemas.models.base import CouchBaseModel


class TenantAccountDoc(CouchBaseModel):
    shop_id: int
    shop_domain: Optional[str] = None
    shop_name: Optional[str] = None
    access_token: Optional[str] = None
    plan_id: Optional[str] = None
    charge_id: Optional[int] = None

    @property
    def is_billable(self) -> bool:
        return bool(
            self.plan_id and self.charge_id and self.shop_domain and self.access_token
        )
