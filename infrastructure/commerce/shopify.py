"""Shopify implementation of BillingProvider.

Only the recurring-charge fields the usage meter needs are read:
``status`` (must be ``active``), ``billing_on`` (the billing-cycle anchor)
and the created usage charge's ``id``.
"""

from datetime import datetime
from typing import Any

import httpx

from errors import ExternalBillingFailed
from infrastructure.http_client import HttpClient
from schemas.models.account import TenantAccountDoc
from shared.datetime_utils import parse_datetime
from shared.logging import get_logger

log = get_logger(__name__)


class ShopifyBillingProvider:
    def __init__(self, http_client: HttpClient, api_version: str = "2024-01") -> None:
        self._http = http_client
        self._api_version = api_version

    def _url(self, account: TenantAccountDoc, path: str) -> str:
        return f"https://{account.shop_domain}/admin/api/{self._api_version}/{path}"

    async def _request(
        self,
        method: str,
        account: TenantAccountDoc,
        path: str,
        action: str,
        resource: str,
        **kwargs: Any,
    ) -> dict:
        """Send one Admin API call and return the ``resource`` object of its body.

        Transport errors, non-2xx statuses and 2xx bodies without a
        ``resource`` object all raise ExternalBillingFailed.
        """
        headers = {
            "X-Shopify-Access-Token": account.access_token or "",
            "Content-Type": "application/json",
        }
        try:
            response = await self._http.request(
                method, self._url(account, path), headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            raise ExternalBillingFailed(
                f"Shopify request failed while {action} for shop {account.shop_id}.",
                details={"error": str(e), "error_type": type(e).__name__},
            ) from e

        if not response.is_success:
            raise ExternalBillingFailed(
                f"Shopify returned {response.status_code} while {action} "
                f"for shop {account.shop_id}.",
                details={"status_code": response.status_code, "response": response.text[:200]},
            )

        try:
            payload = response.json()[resource]
        except (ValueError, KeyError, TypeError):
            payload = None
        if not isinstance(payload, dict):
            raise ExternalBillingFailed(
                f"Shopify sent an unexpected body while {action} for shop {account.shop_id}.",
                details={"status_code": response.status_code, "response": response.text[:200]},
            )
        return payload

    async def get_recurring_charge(self, account: TenantAccountDoc) -> dict:
        return await self._request(
            "GET",
            account,
            f"recurring_application_charges/{account.charge_id}.json",
            "getting recurring charge",
            "recurring_application_charge",
        )

    async def get_billing_anchor(self, account: TenantAccountDoc) -> datetime:
        charge = await self.get_recurring_charge(account)
        if charge.get("status") != "active":
            raise ExternalBillingFailed(
                f"Recurring charge {account.charge_id} for shop {account.shop_id} "
                f"is {charge.get('status')}, not active.",
            )

        anchor = parse_datetime(charge.get("billing_on"))
        if anchor is None:
            raise ExternalBillingFailed(
                f"Recurring charge {account.charge_id} has no billing date.",
                details={"billing_on": charge.get("billing_on")},
            )
        return anchor

    async def create_usage_charge(
        self, account: TenantAccountDoc, amount: float, description: str
    ) -> int:
        charge = await self._request(
            "POST",
            account,
            f"recurring_application_charges/{account.charge_id}/usage_charges.json",
            "creating usage charge",
            "usage_charge",
            json={"usage_charge": {"description": description, "price": amount}},
        )
        charge_id = charge.get("id")
        if charge_id is None:
            raise ExternalBillingFailed(
                f"Shopify did not return an id for the usage charge of shop {account.shop_id}.",
                details={"usage_charge": charge},
            )
        log.info(
            "shopify_usage_charge_created",
            shop_id=account.shop_id,
            usage_charge_id=charge_id,
            amount=amount,
        )
        return charge_id
