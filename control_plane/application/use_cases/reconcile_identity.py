from __future__ import annotations

import logging
from typing import Callable

from control_plane.application.dto.auth import ReconciliationResult
from control_plane.application.ports.clock_port import ClockPort
from control_plane.application.ports.identity_store_port import IdentityStorePort
from control_plane.application.use_cases.provision_default_plan import DefaultPlanProvisioner
from control_plane.domain.entities.link_event import ProviderRelinkedEvent
from control_plane.domain.entities.oauth_profile import OAuthProfile
from control_plane.domain.entities.user import UserIdentity
from control_plane.domain.exceptions import (
    IdentityConflictError,
    ReconciliationError,
    StoreUnavailableError,
)
from control_plane.domain.services.stream_key import generate_stream_key

from .auth_common import normalize_email


logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Maps an OAuth profile to exactly one account.

    The lookup order is fixed: provider id first, then email, then creation.
    A provider id match wins even when the profile now reports another email.
    """

    def __init__(
        self,
        *,
        identity_store: IdentityStorePort,
        plan_provisioner: DefaultPlanProvisioner,
        clock: ClockPort,
        stream_key_factory: Callable[[], str] = generate_stream_key,
    ):
        self._identity_store = identity_store
        self._plan_provisioner = plan_provisioner
        self._clock = clock
        self._stream_key_factory = stream_key_factory

    def reconcile(self, profile: OAuthProfile) -> ReconciliationResult:
        try:
            return self._reconcile(profile, allow_create=True)
        except StoreUnavailableError:
            logger.exception(
                "reconciliation: store_unavailable provider=%s provider_id=%s",
                profile.provider,
                profile.provider_id,
            )
            raise

    def _reconcile(self, profile: OAuthProfile, *, allow_create: bool) -> ReconciliationResult:
        email = normalize_email(profile.email)

        existing = self._identity_store.find_by_provider(
            provider=profile.provider,
            provider_id=profile.provider_id,
        )
        if existing is not None:
            return self._refresh(existing, profile)

        if email:
            by_email = self._identity_store.find_by_email(email=email)
            if by_email is not None:
                return self._link(by_email, profile, email)

        if not allow_create:
            raise ReconciliationError(
                f"No account for {profile.provider} id {profile.provider_id} after insert conflict."
            )
        return self._create(profile, email)

    def _refresh(self, user: UserIdentity, profile: OAuthProfile) -> ReconciliationResult:
        refreshed = self._identity_store.refresh_oauth_profile(
            user_id=user.id,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            oauth_email=profile.email,
        )
        logger.info(
            "reconciliation: matched user_id=%s provider=%s",
            refreshed.id,
            profile.provider,
        )
        return ReconciliationResult(user=refreshed, outcome="matched")

    def _link(self, user: UserIdentity, profile: OAuthProfile, email: str) -> ReconciliationResult:
        event = ProviderRelinkedEvent(
            user_id=user.id,
            email=email,
            previous_provider=user.oauth_provider,
            previous_provider_id=user.oauth_provider_id,
            new_provider=profile.provider,
            new_provider_id=profile.provider_id,
            occurred_at=self._clock.now(),
        )
        linked = self._identity_store.link_provider(
            user_id=user.id,
            provider=profile.provider,
            provider_id=profile.provider_id,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            oauth_email=profile.email,
            event=event,
        )
        if event.displaces_provider:
            logger.warning(
                "reconciliation: provider_relinked user_id=%s from=%s:%s to=%s:%s",
                user.id,
                event.previous_provider,
                event.previous_provider_id,
                event.new_provider,
                event.new_provider_id,
            )
        else:
            logger.info(
                "reconciliation: provider_linked user_id=%s provider=%s",
                user.id,
                profile.provider,
            )
        return ReconciliationResult(user=linked, outcome="linked")

    def _create(self, profile: OAuthProfile, email: str | None) -> ReconciliationResult:
        try:
            created = self._identity_store.create_oauth_user(
                email=email,
                provider=profile.provider,
                provider_id=profile.provider_id,
                display_name=profile.display_name,
                avatar_url=profile.avatar_url,
                stream_key=self._stream_key_factory(),
            )
        except IdentityConflictError:
            # A concurrent callback inserted first; replay the lookups once.
            logger.info(
                "reconciliation: insert_conflict_replay provider=%s provider_id=%s",
                profile.provider,
                profile.provider_id,
            )
            return self._reconcile(profile, allow_create=False)

        logger.info(
            "reconciliation: created user_id=%s provider=%s",
            created.id,
            profile.provider,
        )
        self._plan_provisioner.provision(user_id=created.id)
        return ReconciliationResult(user=created, outcome="created")
