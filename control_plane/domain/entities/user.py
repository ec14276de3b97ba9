from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


OAuthProvider = Literal["google", "twitch"]


@dataclass(frozen=True)
class UserIdentity:
    id: int
    uuid: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    stream_key: str
    oauth_provider: OAuthProvider | None
    oauth_provider_id: str | None
    oauth_email: str | None
    password_hash: str | None
    created_at: datetime | None

    @property
    def is_password_account(self) -> bool:
        return self.password_hash is not None
