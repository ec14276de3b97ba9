from __future__ import annotations

import logging
from datetime import timedelta

from control_plane.application.ports.clock_port import ClockPort
from control_plane.application.ports.plan_store_port import PlanStorePort
from control_plane.domain.entities.subscription import Subscription
from control_plane.domain.exceptions import SubscriptionProvisioningError


logger = logging.getLogger(__name__)


DEFAULT_PLAN_NAME = "Free"
DEFAULT_PERIOD_DAYS = 30


class DefaultPlanProvisioner:
    """Assigns the default plan to freshly created accounts.

    Best effort: every failure is logged and swallowed so that account
    creation never depends on the plan store.
    """

    def __init__(
        self,
        *,
        plan_store: PlanStorePort,
        clock: ClockPort,
        plan_name: str = DEFAULT_PLAN_NAME,
        period_days: int = DEFAULT_PERIOD_DAYS,
    ):
        self._plan_store = plan_store
        self._clock = clock
        self._plan_name = plan_name
        self._period_days = period_days

    def provision(self, *, user_id: int) -> Subscription | None:
        try:
            plan = self._plan_store.find_plan_by_name(name=self._plan_name)
            if plan is None:
                raise SubscriptionProvisioningError(f"Plan '{self._plan_name}' not found.")

            now = self._clock.now()
            subscription = self._plan_store.create_subscription(
                user_id=user_id,
                plan_id=plan.id,
                status="active",
                current_period_start=now,
                current_period_end=now + timedelta(days=self._period_days),
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "default_plan: provisioning_failed user_id=%s plan=%s error=%s",
                user_id,
                self._plan_name,
                exc,
            )
            return None

        logger.info(
            "default_plan: assigned user_id=%s plan_id=%s period_end=%s",
            user_id,
            subscription.plan_id,
            subscription.current_period_end.isoformat(),
        )
        return subscription
