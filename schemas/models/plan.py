"""Subscription plan model. Plans live in code, not in the database."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Plan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    # Charged once per billing batch above the free tier
    price_per_batch: float
    free_prompts: int
    # Upper bound on usage charges per billing cycle
    price_cap: float
