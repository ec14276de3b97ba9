from __future__ import annotations

from urllib.parse import urlencode

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests
from google.oauth2 import id_token

from control_plane.application.ports.oauth_provider_port import OAuthProviderPort
from control_plane.domain.entities.oauth_profile import OAuthProfile
from control_plane.domain.exceptions import OAuthExchangeError
from control_plane.domain.services.oauth_profile import normalize_google_profile

from .oauth_http import request_json


GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_SCOPES = ("openid", "email", "profile")


class GoogleOAuthClient(OAuthProviderPort):
    provider = "google"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        callback_url: str,
        timeout_seconds: float,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._callback_url = callback_url
        self._timeout_seconds = timeout_seconds

    def authorization_url(self) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._callback_url,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    def fetch_profile(self, *, code: str) -> OAuthProfile:
        tokens = request_json(
            "POST",
            GOOGLE_TOKEN_URL,
            provider=self.provider,
            timeout_seconds=self._timeout_seconds,
            data={
                "code": code,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "redirect_uri": self._callback_url,
                "grant_type": "authorization_code",
            },
        )
        raw_id_token = tokens.get("id_token")
        if not raw_id_token:
            raise OAuthExchangeError("Google token response has no id_token.")

        try:
            claims = id_token_verify(token=raw_id_token, audience=self._client_id)
        except (GoogleAuthError, ValueError) as exc:
            raise OAuthExchangeError("Invalid Google id_token.") from exc

        return normalize_google_profile(claims)


def id_token_verify(*, token: str, audience: str) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
