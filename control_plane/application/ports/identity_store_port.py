from __future__ import annotations

from typing import Protocol

from control_plane.domain.entities.link_event import ProviderRelinkedEvent
from control_plane.domain.entities.user import UserIdentity


class IdentityStorePort(Protocol):
    def get_user_by_id(self, *, user_id: int) -> UserIdentity | None:
        ...

    def find_by_provider(self, *, provider: str, provider_id: str) -> UserIdentity | None:
        ...

    def find_by_email(self, *, email: str) -> UserIdentity | None:
        ...

    def refresh_oauth_profile(
        self,
        *,
        user_id: int,
        display_name: str | None,
        avatar_url: str | None,
        oauth_email: str | None,
    ) -> UserIdentity:
        ...

    def link_provider(
        self,
        *,
        user_id: int,
        provider: str,
        provider_id: str,
        display_name: str | None,
        avatar_url: str | None,
        oauth_email: str | None,
        event: ProviderRelinkedEvent,
    ) -> UserIdentity:
        ...

    def create_oauth_user(
        self,
        *,
        email: str | None,
        provider: str,
        provider_id: str,
        display_name: str | None,
        avatar_url: str | None,
        stream_key: str,
    ) -> UserIdentity:
        ...
