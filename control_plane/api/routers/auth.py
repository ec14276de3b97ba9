from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from control_plane.api.deps import (
    get_current_user,
    get_google_login_use_case,
    get_twitch_login_use_case,
    get_validate_session_use_case,
)
from control_plane.api.schemas.auth import (
    OAuthLoginUserPayload,
    SessionUserResponse,
    ValidateTokenRequest,
    ValidateTokenResponse,
)
from control_plane.application.dto.auth import (
    OAuthCallbackInput,
    OAuthLoginOutput,
    ValidateSessionInput,
)
from control_plane.application.use_cases.login_oauth import LoginOAuthUseCase
from control_plane.application.use_cases.validate_session import ValidateSessionUseCase
from control_plane.domain.entities.user import UserIdentity
from control_plane.domain.exceptions import (
    InvalidSessionTokenError,
    OAuthExchangeError,
    ProviderProfileMalformedError,
    ReconciliationError,
    SigningError,
    StoreUnavailableError,
    UserNotFoundError,
)
from control_plane.shared.config import get_settings


logger = logging.getLogger(__name__)

router = APIRouter()

AUTHENTICATION_FAILED = "Authentication failed."

MAX_REDIRECT_URL_LENGTH = 2000


def _session_user(user: UserIdentity) -> SessionUserResponse:
    return SessionUserResponse(
        id=user.id,
        uuid=user.uuid,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        stream_key=user.stream_key,
        oauth_provider=user.oauth_provider,
    )


def _frontend_redirect(output: OAuthLoginOutput) -> RedirectResponse:
    user = output.user
    payload = OAuthLoginUserPayload(
        id=user.id,
        uuid=user.uuid,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        stream_key=user.stream_key,
        oauth_provider=user.oauth_provider,
        is_new_user=output.is_new_user,
        account_linked=output.account_linked,
    )
    query = urlencode(
        {
            "token": output.token,
            "user": payload.model_dump_json(by_alias=True),
        }
    )
    redirect_url = f"{get_settings().frontend_url}/auth?{query}"
    if len(redirect_url) > MAX_REDIRECT_URL_LENGTH:
        logger.warning("auth_router: long_redirect_url length=%s user_id=%s", len(redirect_url), user.id)
    return RedirectResponse(redirect_url, status_code=302)


def _complete_login(
    *,
    provider: str,
    code: str | None,
    error: str | None,
    use_case: LoginOAuthUseCase,
) -> RedirectResponse:
    if error or not code:
        logger.info("auth_router: oauth_callback_without_code provider=%s error=%s", provider, error)
        raise HTTPException(status_code=401, detail=AUTHENTICATION_FAILED)

    try:
        output = use_case.execute(OAuthCallbackInput(provider=provider, code=code))
    except (OAuthExchangeError, ProviderProfileMalformedError) as exc:
        logger.warning("auth_router: oauth_profile_rejected provider=%s error=%s", provider, exc)
        raise HTTPException(status_code=401, detail=AUTHENTICATION_FAILED) from exc
    except (ReconciliationError, SigningError) as exc:
        logger.error("auth_router: oauth_login_failed provider=%s error=%s", provider, exc)
        raise HTTPException(status_code=401, detail=AUTHENTICATION_FAILED) from exc

    return _frontend_redirect(output)


@router.get("/api/auth/google")
def google_authorize(use_case: LoginOAuthUseCase = Depends(get_google_login_use_case)):
    return RedirectResponse(use_case.authorization_url(), status_code=302)


@router.get("/api/auth/google/callback")
def google_callback(
    code: str | None = Query(default=None),
    error: str | None = Query(default=None),
    use_case: LoginOAuthUseCase = Depends(get_google_login_use_case),
):
    return _complete_login(provider="google", code=code, error=error, use_case=use_case)


@router.get("/api/auth/twitch")
def twitch_authorize(use_case: LoginOAuthUseCase = Depends(get_twitch_login_use_case)):
    return RedirectResponse(use_case.authorization_url(), status_code=302)


@router.get("/api/auth/twitch/callback")
def twitch_callback(
    code: str | None = Query(default=None),
    error: str | None = Query(default=None),
    use_case: LoginOAuthUseCase = Depends(get_twitch_login_use_case),
):
    return _complete_login(provider="twitch", code=code, error=error, use_case=use_case)


@router.post("/api/auth/validate-token", response_model=ValidateTokenResponse)
def validate_token(
    req: ValidateTokenRequest,
    use_case: ValidateSessionUseCase = Depends(get_validate_session_use_case),
):
    try:
        user = use_case.execute(ValidateSessionInput(token=req.token))
    except (InvalidSessionTokenError, UserNotFoundError) as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Authentication error.") from exc

    return ValidateTokenResponse(user=_session_user(user))


@router.get("/api/auth/me", response_model=SessionUserResponse)
def get_me(user: UserIdentity = Depends(get_current_user)):
    return _session_user(user)
