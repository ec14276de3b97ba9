from __future__ import annotations

from datetime import datetime, timedelta

import jwt

from control_plane.application.dto.auth import SessionToken, SessionTokenPayload
from control_plane.application.ports.token_port import TokenPort
from control_plane.domain.entities.user import UserIdentity
from control_plane.domain.exceptions import InvalidSessionTokenError, SigningError
from control_plane.shared.config import PLACEHOLDER_JWT_SECRET


JWT_ALGORITHM = "HS256"

SESSION_CLAIMS = (
    "userId",
    "userUuid",
    "email",
    "displayName",
    "avatarUrl",
    "streamKey",
    "oauthProvider",
)


class JwtSessionTokenService(TokenPort):
    def __init__(
        self,
        *,
        jwt_secret: str | None,
        ttl_days: int = 7,
        allow_placeholder_secret: bool = False,
    ):
        self._jwt_secret = jwt_secret
        self._ttl_days = ttl_days
        self._allow_placeholder_secret = allow_placeholder_secret

    def issue(self, *, user: UserIdentity, now: datetime) -> SessionToken:
        secret = self._signing_secret()
        exp = now + timedelta(days=self._ttl_days)
        payload = {
            "userId": user.id,
            "userUuid": user.uuid,
            "email": user.email,
            "displayName": user.display_name,
            "avatarUrl": user.avatar_url,
            "streamKey": user.stream_key,
            "oauthProvider": user.oauth_provider,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        try:
            token = jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError("Failed to sign session token.") from exc
        return SessionToken(token=token, expires_at=exp)

    def decode(self, *, token: str) -> SessionTokenPayload:
        if not self._jwt_secret:
            raise InvalidSessionTokenError("Session tokens cannot be verified without a secret.")
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidSessionTokenError("Token expired.") from exc
        except jwt.PyJWTError as exc:
            raise InvalidSessionTokenError("Invalid token.") from exc

        user_id = payload.get("userId")
        stream_key = payload.get("streamKey")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidSessionTokenError("Invalid token subject.")
        if not isinstance(stream_key, str):
            raise InvalidSessionTokenError("Invalid token payload.")

        return SessionTokenPayload(
            user_id=user_id,
            user_uuid=str(payload.get("userUuid")),
            email=payload.get("email"),
            display_name=payload.get("displayName"),
            avatar_url=payload.get("avatarUrl"),
            stream_key=stream_key,
            oauth_provider=payload.get("oauthProvider"),
        )

    def _signing_secret(self) -> str:
        if not self._jwt_secret:
            raise SigningError("JWT_SECRET is not configured.")
        if self._jwt_secret == PLACEHOLDER_JWT_SECRET and not self._allow_placeholder_secret:
            raise SigningError("JWT_SECRET still holds the development placeholder.")
        return self._jwt_secret
