from __future__ import annotations

from datetime import datetime

from sqlalchemy import text

from control_plane.application.ports.plan_store_port import PlanStorePort
from control_plane.domain.entities.plan import Plan
from control_plane.domain.entities.subscription import Subscription
from control_plane.domain.exceptions import SubscriptionProvisioningError
from control_plane.infrastructure.db.mappers.accounts_mapper import (
    map_row_to_plan,
    map_row_to_subscription,
)
from control_plane.infrastructure.db.store_errors import translate_store_errors


class SqlPlanRepository(PlanStorePort):
    def __init__(self, engine):
        self._engine = engine

    def find_plan_by_name(self, *, name: str) -> Plan | None:
        sql = """
            SELECT id, name, description
            FROM public.subscription_plans
            WHERE name = :name
            ORDER BY id
            LIMIT 1
        """
        with translate_store_errors("find_plan_by_name"):
            with self._engine.connect() as conn:
                row = conn.execute(text(sql), {"name": name}).mappings().first()
        if row is None:
            return None
        return map_row_to_plan(row)

    def create_subscription(
        self,
        *,
        user_id: int,
        plan_id: int,
        status: str,
        current_period_start: datetime,
        current_period_end: datetime,
    ) -> Subscription:
        sql = """
            INSERT INTO public.user_subscriptions (
                user_id, plan_id, status, current_period_start, current_period_end
            ) VALUES (
                :user_id, :plan_id, :status, :current_period_start, :current_period_end
            )
            RETURNING id, user_id, plan_id, status, current_period_start, current_period_end
        """
        with translate_store_errors("create_subscription", conflict_error=SubscriptionProvisioningError):
            with self._engine.begin() as conn:
                row = conn.execute(
                    text(sql),
                    {
                        "user_id": user_id,
                        "plan_id": plan_id,
                        "status": status,
                        "current_period_start": current_period_start,
                        "current_period_end": current_period_end,
                    },
                ).mappings().one()
        return map_row_to_subscription(row)
