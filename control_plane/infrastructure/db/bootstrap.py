from __future__ import annotations

import logging

from control_plane.infrastructure.db.engine import Base
from control_plane.infrastructure.db.models import accounts  # noqa: F401  registers tables
from control_plane.infrastructure.db.seeds.seed_default_plan import seed_default_plan


logger = logging.getLogger(__name__)


def bootstrap_database(engine, *, plan_name: str) -> None:
    Base.metadata.create_all(engine)
    seed_default_plan(engine, plan_name=plan_name)
    logger.info("db_bootstrap: schema_ready default_plan=%s", plan_name)
