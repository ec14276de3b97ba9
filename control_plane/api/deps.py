from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from control_plane.application.dto.auth import ValidateSessionInput
from control_plane.application.ports.oauth_provider_port import OAuthProviderPort
from control_plane.application.use_cases.login_oauth import LoginOAuthUseCase
from control_plane.application.use_cases.provision_default_plan import DefaultPlanProvisioner
from control_plane.application.use_cases.reconcile_identity import ReconciliationEngine
from control_plane.application.use_cases.validate_session import ValidateSessionUseCase
from control_plane.domain.entities.user import UserIdentity
from control_plane.domain.exceptions import (
    InvalidSessionTokenError,
    StoreUnavailableError,
    UserNotFoundError,
)
from control_plane.infrastructure.clients.google_oauth_client import GoogleOAuthClient
from control_plane.infrastructure.clients.twitch_oauth_client import TwitchOAuthClient
from control_plane.infrastructure.db.engine import get_engine
from control_plane.infrastructure.db.repositories.identity_repository import SqlIdentityRepository
from control_plane.infrastructure.db.repositories.plan_repository import SqlPlanRepository
from control_plane.infrastructure.security.token_service import JwtSessionTokenService
from control_plane.infrastructure.system_clock import SystemClock
from control_plane.shared.config import get_settings


logger = logging.getLogger(__name__)


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _get_clock() -> SystemClock:
    return SystemClock()


def _get_identity_repository() -> SqlIdentityRepository:
    return SqlIdentityRepository(_get_db_engine())


def _get_plan_repository() -> SqlPlanRepository:
    return SqlPlanRepository(_get_db_engine())


@lru_cache(maxsize=1)
def _get_token_service() -> JwtSessionTokenService:
    settings = get_settings()
    if settings.uses_placeholder_jwt_secret:
        if settings.is_production:
            logger.error("deps: jwt_secret_placeholder_in_production sessions will not be issued")
        else:
            logger.warning("deps: jwt_secret_placeholder app_env=%s", settings.app_env)
    return JwtSessionTokenService(
        jwt_secret=settings.jwt_secret,
        ttl_days=settings.jwt_ttl_days,
        allow_placeholder_secret=not settings.is_production,
    )


@lru_cache(maxsize=1)
def get_enabled_oauth_clients() -> dict[str, OAuthProviderPort]:
    settings = get_settings()
    clients: dict[str, OAuthProviderPort] = {}
    if settings.google.enabled:
        clients["google"] = GoogleOAuthClient(
            client_id=settings.google.client_id,
            client_secret=settings.google.client_secret,
            callback_url=settings.google.callback_url,
            timeout_seconds=settings.oauth_http_timeout_seconds,
        )
    if settings.twitch.enabled:
        clients["twitch"] = TwitchOAuthClient(
            client_id=settings.twitch.client_id,
            client_secret=settings.twitch.client_secret,
            callback_url=settings.twitch.callback_url,
            timeout_seconds=settings.oauth_http_timeout_seconds,
        )
    logger.info("deps: oauth_providers_enabled providers=%s", sorted(clients))
    return clients


def get_reconciliation_engine() -> ReconciliationEngine:
    settings = get_settings()
    clock = _get_clock()
    return ReconciliationEngine(
        identity_store=_get_identity_repository(),
        plan_provisioner=DefaultPlanProvisioner(
            plan_store=_get_plan_repository(),
            clock=clock,
            plan_name=settings.default_plan_name,
            period_days=settings.default_plan_period_days,
        ),
        clock=clock,
    )


def _get_login_use_case(provider: str) -> LoginOAuthUseCase:
    client = get_enabled_oauth_clients().get(provider)
    if client is None:
        raise HTTPException(status_code=404, detail=f"{provider.title()} sign-in is not enabled.")
    return LoginOAuthUseCase(
        provider_client=client,
        engine=get_reconciliation_engine(),
        token_port=_get_token_service(),
        clock=_get_clock(),
    )


def get_google_login_use_case() -> LoginOAuthUseCase:
    return _get_login_use_case("google")


def get_twitch_login_use_case() -> LoginOAuthUseCase:
    return _get_login_use_case("twitch")


def get_validate_session_use_case() -> ValidateSessionUseCase:
    return ValidateSessionUseCase(
        identity_store=_get_identity_repository(),
        token_port=_get_token_service(),
    )


def get_current_user(
    authorization: str = Header(...),
    use_case: ValidateSessionUseCase = Depends(get_validate_session_use_case),
) -> UserIdentity:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Access token required.")

    try:
        return use_case.execute(ValidateSessionInput(token=token))
    except InvalidSessionTokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except UserNotFoundError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Authentication error.") from exc
