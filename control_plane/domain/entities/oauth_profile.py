from __future__ import annotations

from dataclasses import dataclass

from control_plane.domain.entities.user import OAuthProvider


@dataclass(frozen=True)
class OAuthProfile:
    provider: OAuthProvider
    provider_id: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
