from __future__ import annotations

from sqlalchemy import text


def seed_default_plan(engine, *, plan_name: str = "Free") -> None:
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                INSERT INTO public.subscription_plans (name, description)
                SELECT :name, :description
                WHERE NOT EXISTS (
                    SELECT 1 FROM public.subscription_plans WHERE name = :name
                )
                """
            ),
            {
                "name": plan_name,
                "description": "Default plan assigned to new accounts",
            },
        )
