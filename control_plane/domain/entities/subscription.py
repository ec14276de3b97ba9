from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


SubscriptionStatus = Literal[
    "active",
    "trialing",
    "past_due",
    "canceled",
    "expired",
]


@dataclass(frozen=True)
class Subscription:
    id: int
    user_id: int
    plan_id: int
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
