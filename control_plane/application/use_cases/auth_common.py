from __future__ import annotations

from control_plane.application.ports.clock_port import ClockPort
from control_plane.application.ports.token_port import TokenPort
from control_plane.application.dto.auth import SessionToken
from control_plane.domain.entities.user import UserIdentity


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    normalized = email.strip().lower()
    return normalized or None


def issue_session(*, user: UserIdentity, token_port: TokenPort, clock: ClockPort) -> SessionToken:
    return token_port.issue(user=user, now=clock.now())
