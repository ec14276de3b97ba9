from __future__ import annotations

import logging

from control_plane.application.dto.auth import OAuthCallbackInput, OAuthLoginOutput
from control_plane.application.ports.clock_port import ClockPort
from control_plane.application.ports.oauth_provider_port import OAuthProviderPort
from control_plane.application.ports.token_port import TokenPort
from control_plane.domain.exceptions import SigningError

from .auth_common import issue_session
from .reconcile_identity import ReconciliationEngine


logger = logging.getLogger(__name__)


class LoginOAuthUseCase:
    def __init__(
        self,
        *,
        provider_client: OAuthProviderPort,
        engine: ReconciliationEngine,
        token_port: TokenPort,
        clock: ClockPort,
    ):
        self._provider_client = provider_client
        self._engine = engine
        self._token_port = token_port
        self._clock = clock

    @property
    def provider(self) -> str:
        return self._provider_client.provider

    def authorization_url(self) -> str:
        return self._provider_client.authorization_url()

    def execute(self, command: OAuthCallbackInput) -> OAuthLoginOutput:
        if command.provider != self._provider_client.provider:
            raise ValueError(
                f"Callback for {command.provider} routed to {self._provider_client.provider} client."
            )

        profile = self._provider_client.fetch_profile(code=command.code)
        result = self._engine.reconcile(profile)

        try:
            session = issue_session(user=result.user, token_port=self._token_port, clock=self._clock)
        except SigningError:
            logger.error(
                "oauth_login: signing_failed user_id=%s provider=%s outcome=%s",
                result.user.id,
                profile.provider,
                result.outcome,
            )
            raise

        logger.info(
            "oauth_login: session_issued user_id=%s provider=%s outcome=%s",
            result.user.id,
            profile.provider,
            result.outcome,
        )
        return OAuthLoginOutput(
            user=result.user,
            token=session.token,
            expires_at=session.expires_at,
            is_new_user=result.is_new_user,
            account_linked=result.account_linked,
        )
