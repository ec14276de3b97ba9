from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from control_plane.domain.exceptions import OAuthExchangeError
from control_plane.infrastructure.clients import oauth_http
from control_plane.infrastructure.clients.google_oauth_client import GoogleOAuthClient
from control_plane.infrastructure.clients.twitch_oauth_client import TwitchOAuthClient


def _google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id="google-client",
        client_secret="google-secret",
        callback_url="http://localhost:3000/api/auth/google/callback",
        timeout_seconds=5,
    )


def _twitch_client() -> TwitchOAuthClient:
    return TwitchOAuthClient(
        client_id="twitch-client",
        client_secret="twitch-secret",
        callback_url="http://localhost:3000/api/auth/twitch/callback",
        timeout_seconds=5,
    )


def _mock_httpx(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    real_client = httpx.Client

    def _factory(*, timeout):
        return real_client(timeout=timeout, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(oauth_http.httpx, "Client", _factory)


def test_google_authorization_url_requests_openid_scopes():
    url = urlparse(_google_client().authorization_url())
    params = parse_qs(url.query)

    assert url.netloc == "accounts.google.com"
    assert params["client_id"] == ["google-client"]
    assert params["redirect_uri"] == ["http://localhost:3000/api/auth/google/callback"]
    assert params["response_type"] == ["code"]
    assert params["scope"] == ["openid email profile"]


def test_google_fetch_profile_verifies_id_token(monkeypatch: pytest.MonkeyPatch):
    calls = {}

    def fake_request_json(method, url, **kwargs):
        calls["token_request"] = (method, url, kwargs["data"])
        return {"access_token": "at", "id_token": "raw-id-token"}

    def fake_verify(*, token, audience):
        calls["verify"] = (token, audience)
        return {"sub": "g-123", "email": "ann@example.com", "name": "Ann"}

    monkeypatch.setattr(
        "control_plane.infrastructure.clients.google_oauth_client.request_json",
        fake_request_json,
    )
    monkeypatch.setattr(
        "control_plane.infrastructure.clients.google_oauth_client.id_token_verify",
        fake_verify,
    )

    profile = _google_client().fetch_profile(code="auth-code")

    method, url, data = calls["token_request"]
    assert method == "POST"
    assert url == "https://oauth2.googleapis.com/token"
    assert data["code"] == "auth-code"
    assert data["grant_type"] == "authorization_code"
    assert calls["verify"] == ("raw-id-token", "google-client")
    assert profile.provider_id == "g-123"
    assert profile.avatar_url is None


def test_google_invalid_id_token_is_an_exchange_error(monkeypatch: pytest.MonkeyPatch):
    def fake_verify(*, token, audience):
        raise ValueError("Token used too late")

    monkeypatch.setattr(
        "control_plane.infrastructure.clients.google_oauth_client.request_json",
        lambda *args, **kwargs: {"id_token": "raw"},
    )
    monkeypatch.setattr(
        "control_plane.infrastructure.clients.google_oauth_client.id_token_verify",
        fake_verify,
    )

    with pytest.raises(OAuthExchangeError):
        _google_client().fetch_profile(code="auth-code")


def test_twitch_fetch_profile_reads_helix_user(monkeypatch: pytest.MonkeyPatch):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.host == "id.twitch.tv":
            return httpx.Response(200, json={"access_token": "twitch-at", "token_type": "bearer"})
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "id": "141981764",
                        "login": "twitchdev",
                        "display_name": "TwitchDev",
                        "email": "dev@twitch.tv",
                        "profile_image_url": "https://static-cdn.jtvnw.net/dev.png",
                    }
                ]
            },
        )

    _mock_httpx(monkeypatch, handler)

    profile = _twitch_client().fetch_profile(code="auth-code")

    assert profile.provider == "twitch"
    assert profile.provider_id == "141981764"
    assert profile.display_name == "TwitchDev"
    assert profile.email == "dev@twitch.tv"
    assert seen[1].headers["Authorization"] == "Bearer twitch-at"
    assert seen[1].headers["Client-Id"] == "twitch-client"


def test_twitch_rejected_code_is_an_exchange_error(monkeypatch: pytest.MonkeyPatch):
    _mock_httpx(monkeypatch, lambda request: httpx.Response(400, json={"message": "Invalid authorization code"}))

    with pytest.raises(OAuthExchangeError):
        _twitch_client().fetch_profile(code="stale-code")


def test_twitch_empty_user_list_is_an_exchange_error(monkeypatch: pytest.MonkeyPatch):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "id.twitch.tv":
            return httpx.Response(200, json={"access_token": "twitch-at"})
        return httpx.Response(200, json={"data": []})

    _mock_httpx(monkeypatch, handler)

    with pytest.raises(OAuthExchangeError):
        _twitch_client().fetch_profile(code="auth-code")


def test_twitch_non_list_user_data_is_an_exchange_error(monkeypatch: pytest.MonkeyPatch):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "id.twitch.tv":
            return httpx.Response(200, json={"access_token": "twitch-at"})
        return httpx.Response(200, json={"data": {"id": "141981764"}})

    _mock_httpx(monkeypatch, handler)

    with pytest.raises(OAuthExchangeError):
        _twitch_client().fetch_profile(code="auth-code")
