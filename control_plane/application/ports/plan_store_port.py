from __future__ import annotations

from datetime import datetime
from typing import Protocol

from control_plane.domain.entities.plan import Plan
from control_plane.domain.entities.subscription import Subscription


class PlanStorePort(Protocol):
    def find_plan_by_name(self, *, name: str) -> Plan | None:
        ...

    def create_subscription(
        self,
        *,
        user_id: int,
        plan_id: int,
        status: str,
        current_period_start: datetime,
        current_period_end: datetime,
    ) -> Subscription:
        ...
