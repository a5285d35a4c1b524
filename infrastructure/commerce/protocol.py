"""BillingProvider protocol - the usage meter depends on this, not on Shopify."""

from datetime import datetime
from typing import Protocol

from schemas.models.account import TenantAccountDoc


class BillingProvider(Protocol):
    async def get_billing_anchor(self, account: TenantAccountDoc) -> datetime: ...

    async def create_usage_charge(
        self, account: TenantAccountDoc, amount: float, description: str
    ) -> int: ...
