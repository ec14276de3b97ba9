from __future__ import annotations

from datetime import datetime
from typing import Protocol

from control_plane.application.dto.auth import SessionToken, SessionTokenPayload
from control_plane.domain.entities.user import UserIdentity


class TokenPort(Protocol):
    def issue(self, *, user: UserIdentity, now: datetime) -> SessionToken:
        ...

    def decode(self, *, token: str) -> SessionTokenPayload:
        ...
