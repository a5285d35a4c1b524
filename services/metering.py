"""
Usage metering and the billing trigger.

After every logged prompt the shop's prompt count for the current billing
window (``[billing anchor - 30 days, now]``) is read back from the
count-by-timestamp view. When the count is above the plan's free tier and an
exact multiple of the batch size, one usage charge for the plan's
``price_per_batch`` is created.

The meter keeps no state of its own: BELOW_THRESHOLD / CHARGE_PENDING is
recomputed from the view on every prompt. The view is eventually consistent
with the append that was just written, so a lagging read can miss a crossing
or see it twice under concurrent prompts. Charges are therefore an
at-least-once, best-effort signal; gaps are reconciled outside this service.

Billing problems never fail the prompt append: ExternalBillingFailed is
logged here and swallowed, and so is a store error while counting.
"""

from __future__ import annotations

from enum import Enum

from errors import ExternalBillingFailed, NotFoundError, StoreError
from infrastructure.commerce.protocol import BillingProvider
from schemas.models.account import TenantAccountDoc
from schemas.models.plan import Plan
from schemas.models.prompt import LoggedPromptDoc
from services.plans import DEFAULT_BATCH_SIZE, find_plan
from services.prompt_logs import PromptLogManager
from shared.datetime_utils import billing_window_start
from shared.logging import get_logger

log = get_logger(__name__)


class MeterState(str, Enum):
    BELOW_THRESHOLD = "BELOW_THRESHOLD"
    CHARGE_PENDING = "CHARGE_PENDING"


def evaluate(count: int, free_prompts: int, batch_size: int) -> MeterState:
    if count > free_prompts and count % batch_size == 0:
        return MeterState.CHARGE_PENDING
    return MeterState.BELOW_THRESHOLD


class UsageMeter:
    def __init__(
        self,
        prompt_logs: PromptLogManager,
        billing: BillingProvider,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        window_days: int = 30,
    ) -> None:
        self._logs = prompt_logs
        self._billing = billing
        self.batch_size = batch_size
        self.window_days = window_days

    async def record_prompt(
        self,
        account: TenantAccountDoc,
        geodirect_id: str,
        geodirect_revision: str,
    ) -> LoggedPromptDoc:
        """Append a prompt to the shop's log, then run the billing trigger."""
        prompt = await self._logs.append(account.shop_id, geodirect_id, geodirect_revision)
        await self.meter(account)
        return prompt

    async def meter(self, account: TenantAccountDoc) -> MeterState:
        if not account.is_billable:
            log.debug(
                "usage_metering_skipped", shop_id=account.shop_id, reason="no_active_plan"
            )
            return MeterState.BELOW_THRESHOLD

        try:
            plan = find_plan(account.plan_id)
        except NotFoundError:
            log.error(
                "usage_metering_skipped",
                shop_id=account.shop_id,
                reason="unknown_plan",
                plan_id=account.plan_id,
            )
            return MeterState.BELOW_THRESHOLD

        try:
            anchor = await self._billing.get_billing_anchor(account)
        except ExternalBillingFailed as e:
            log.error(
                "billing_anchor_unavailable",
                shop_id=account.shop_id,
                error=e.message,
                details=e.details,
            )
            return MeterState.BELOW_THRESHOLD

        since = billing_window_start(anchor, self.window_days)
        try:
            count = await self._logs.count_since(account.shop_id, since)
        except StoreError as e:
            log.warning(
                "usage_metering_skipped",
                shop_id=account.shop_id,
                reason="count_unavailable",
                error=e.message,
            )
            return MeterState.BELOW_THRESHOLD

        state = evaluate(count, plan.free_prompts, self.batch_size)
        if state is MeterState.CHARGE_PENDING:
            await self._charge(account, plan, count)
        return state

    async def _charge(self, account: TenantAccountDoc, plan: Plan, count: int) -> None:
        description = (
            f"{self.batch_size} prompts for {plan.name} plan "
            f"({count} prompts this billing cycle)"
        )
        try:
            charge_id = await self._billing.create_usage_charge(
                account, plan.price_per_batch, description
            )
        except ExternalBillingFailed as e:
            log.error(
                "usage_charge_failed",
                shop_id=account.shop_id,
                prompt_count=count,
                amount=plan.price_per_batch,
                error=e.message,
                details=e.details,
            )
            return

        log.info(
            "usage_charge_triggered",
            shop_id=account.shop_id,
            prompt_count=count,
            amount=plan.price_per_batch,
            usage_charge_id=charge_id,
        )
