"""
Subscription plan catalog.

PLANS are offered on the pricing page; RETIRED_PLANS may still be attached to
existing accounts but are no longer offered. find_plan() searches both.
"""

from __future__ import annotations

from errors import NotFoundError
from schemas.models.plan import Plan

DEFAULT_BATCH_SIZE = 100

PLANS: tuple[Plan, ...] = (
    Plan(
        id="0696abc9-43e2-4915-822a-895de5ede035",
        name="Basic",
        price_per_batch=1.00,
        free_prompts=100,
        price_cap=25.00,
    ),
)

RETIRED_PLANS: tuple[Plan, ...] = ()


def find_plan(plan_id: str) -> Plan:
    for plan in PLANS + RETIRED_PLANS:
        if plan.id == plan_id:
            return plan
    raise NotFoundError(f"Unable to find plan with id of {plan_id}.", field="plan_id")


def plan_description(plan: Plan, batch_size: int = DEFAULT_BATCH_SIZE) -> str:
    """``100 free prompts each month, then $1.00 USD per 100 prompts.``"""
    return (
        f"{plan.free_prompts} free prompts each month, then "
        f"${plan.price_per_batch:.2f} USD per {batch_size} prompts."
    )


def plan_terms(plan: Plan, batch_size: int = DEFAULT_BATCH_SIZE) -> str:
    """Terms text shown when the shop accepts the recurring charge."""
    return (
        f"Your first {plan.free_prompts} prompts each month are free, then your "
        f"shop will be charged ${plan.price_per_batch:.2f} USD per {batch_size} prompts"
    )
