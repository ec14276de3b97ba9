from __future__ import annotations

from urllib.parse import urlencode

from control_plane.application.ports.oauth_provider_port import OAuthProviderPort
from control_plane.domain.entities.oauth_profile import OAuthProfile
from control_plane.domain.exceptions import OAuthExchangeError
from control_plane.domain.services.oauth_profile import normalize_twitch_profile

from .oauth_http import request_json


TWITCH_AUTHORIZE_URL = "https://id.twitch.tv/oauth2/authorize"
TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
TWITCH_USERS_URL = "https://api.twitch.tv/helix/users"
TWITCH_SCOPES = ("user:read:email",)


class TwitchOAuthClient(OAuthProviderPort):
    provider = "twitch"

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
            "scope": " ".join(TWITCH_SCOPES),
        }
        return f"{TWITCH_AUTHORIZE_URL}?{urlencode(params)}"

    def fetch_profile(self, *, code: str) -> OAuthProfile:
        tokens = request_json(
            "POST",
            TWITCH_TOKEN_URL,
            provider=self.provider,
            timeout_seconds=self._timeout_seconds,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self._callback_url,
            },
        )
        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthExchangeError("Twitch token response has no access_token.")

        payload = request_json(
            "GET",
            TWITCH_USERS_URL,
            provider=self.provider,
            timeout_seconds=self._timeout_seconds,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Client-Id": self._client_id,
            },
        )
        users = payload.get("data") or []
        if not isinstance(users, list) or not users or not isinstance(users[0], dict):
            raise OAuthExchangeError("Twitch returned no user for the access token.")

        return normalize_twitch_profile(users[0])
