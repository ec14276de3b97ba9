from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from control_plane.domain.entities.user import OAuthProvider, UserIdentity


ReconciliationOutcome = Literal["matched", "linked", "created"]


@dataclass(frozen=True)
class ReconciliationResult:
    user: UserIdentity
    outcome: ReconciliationOutcome

    @property
    def is_new_user(self) -> bool:
        return self.outcome == "created"

    @property
    def account_linked(self) -> bool:
        return self.outcome == "linked"


@dataclass(frozen=True)
class SessionToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class SessionTokenPayload:
    user_id: int
    user_uuid: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    stream_key: str
    oauth_provider: str | None


@dataclass(frozen=True)
class OAuthCallbackInput:
    provider: OAuthProvider
    code: str


@dataclass(frozen=True)
class OAuthLoginOutput:
    user: UserIdentity
    token: str
    expires_at: datetime
    is_new_user: bool
    account_linked: bool


@dataclass(frozen=True)
class ValidateSessionInput:
    token: str
