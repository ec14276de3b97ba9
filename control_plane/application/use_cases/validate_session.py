from __future__ import annotations

from control_plane.application.dto.auth import ValidateSessionInput
from control_plane.application.ports.identity_store_port import IdentityStorePort
from control_plane.application.ports.token_port import TokenPort
from control_plane.domain.entities.user import UserIdentity
from control_plane.domain.exceptions import InvalidSessionTokenError, UserNotFoundError


class ValidateSessionUseCase:
    def __init__(self, *, identity_store: IdentityStorePort, token_port: TokenPort):
        self._identity_store = identity_store
        self._token_port = token_port

    def execute(self, command: ValidateSessionInput) -> UserIdentity:
        token = command.token.strip()
        if not token:
            raise InvalidSessionTokenError("Token required.")

        payload = self._token_port.decode(token=token)
        user = self._identity_store.get_user_by_id(user_id=payload.user_id)
        if user is None:
            raise UserNotFoundError("User not found.")
        return user
