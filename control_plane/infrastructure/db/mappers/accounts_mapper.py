from __future__ import annotations

from typing import Any, Mapping

from control_plane.domain.entities.plan import Plan
from control_plane.domain.entities.subscription import Subscription
from control_plane.domain.entities.user import UserIdentity


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def map_row_to_user_identity(row: Mapping[str, Any]) -> UserIdentity:
    return UserIdentity(
        id=int(row["id"]),
        uuid=str(row["uuid"]),
        email=row.get("email"),
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        stream_key=row["stream_key"],
        oauth_provider=row.get("oauth_provider"),
        oauth_provider_id=_as_optional_str(row.get("oauth_id")),
        oauth_email=row.get("oauth_email"),
        password_hash=row.get("password_hash"),
        created_at=row.get("created_at"),
    )


def map_row_to_plan(row: Mapping[str, Any]) -> Plan:
    return Plan(
        id=int(row["id"]),
        name=row["name"],
        description=row.get("description"),
    )


def map_row_to_subscription(row: Mapping[str, Any]) -> Subscription:
    return Subscription(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        plan_id=int(row["plan_id"]),
        status=row["status"],
        current_period_start=row["current_period_start"],
        current_period_end=row["current_period_end"],
    )
