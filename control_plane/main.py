from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from control_plane.api.routers.auth import router as auth_router
from control_plane.infrastructure.db.bootstrap import bootstrap_database
from control_plane.infrastructure.db.engine import get_engine
from control_plane.shared.config import get_settings


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.db_bootstrap and settings.postgres_dsn:
        bootstrap_database(get_engine(settings.postgres_dsn), plan_name=settings.default_plan_name)
    if settings.is_production and settings.uses_placeholder_jwt_secret:
        logger.error("main: JWT_SECRET is unset in production; OAuth logins will fail")
    yield


app = FastAPI(title="Control Plane API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)


@app.get("/health")
def health():
    return {"status": "ok"}
