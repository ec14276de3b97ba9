from __future__ import annotations

from typing import Protocol

from control_plane.domain.entities.oauth_profile import OAuthProfile
from control_plane.domain.entities.user import OAuthProvider


class OAuthProviderPort(Protocol):
    provider: OAuthProvider

    def authorization_url(self) -> str:
        ...

    def fetch_profile(self, *, code: str) -> OAuthProfile:
        ...
