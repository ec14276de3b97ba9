from __future__ import annotations

from sqlalchemy import text

from control_plane.application.ports.identity_store_port import IdentityStorePort
from control_plane.domain.entities.link_event import ProviderRelinkedEvent
from control_plane.domain.entities.user import UserIdentity
from control_plane.domain.exceptions import IdentityConflictError, StoreUnavailableError
from control_plane.infrastructure.db.mappers.accounts_mapper import map_row_to_user_identity
from control_plane.infrastructure.db.store_errors import translate_store_errors


USER_COLUMNS = """
    id, uuid, email, password_hash, stream_key, display_name, avatar_url,
    oauth_provider, oauth_id, oauth_email, created_at
"""


class SqlIdentityRepository(IdentityStorePort):
    def __init__(self, engine):
        self._engine = engine

    def get_user_by_id(self, *, user_id: int) -> UserIdentity | None:
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE id = :user_id
            LIMIT 1
        """
        with translate_store_errors("get_user_by_id"):
            with self._engine.connect() as conn:
                row = conn.execute(text(sql), {"user_id": user_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_user_identity(row)

    def find_by_provider(self, *, provider: str, provider_id: str) -> UserIdentity | None:
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE oauth_provider = :provider
              AND oauth_id = :provider_id
            LIMIT 1
        """
        with translate_store_errors("find_by_provider"):
            with self._engine.connect() as conn:
                row = conn.execute(
                    text(sql),
                    {
                        "provider": provider,
                        "provider_id": provider_id,
                    },
                ).mappings().first()
        if row is None:
            return None
        return map_row_to_user_identity(row)

    def find_by_email(self, *, email: str) -> UserIdentity | None:
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE lower(email) = :email
            ORDER BY id
            LIMIT 1
        """
        with translate_store_errors("find_by_email"):
            with self._engine.connect() as conn:
                row = conn.execute(text(sql), {"email": email.lower()}).mappings().first()
        if row is None:
            return None
        return map_row_to_user_identity(row)

    def refresh_oauth_profile(
        self,
        *,
        user_id: int,
        display_name: str | None,
        avatar_url: str | None,
        oauth_email: str | None,
    ) -> UserIdentity:
        sql = f"""
            UPDATE public.users
            SET display_name = :display_name,
                avatar_url = :avatar_url,
                oauth_email = :oauth_email
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        with translate_store_errors("refresh_oauth_profile"):
            with self._engine.begin() as conn:
                row = conn.execute(
                    text(sql),
                    {
                        "user_id": user_id,
                        "display_name": display_name,
                        "avatar_url": avatar_url,
                        "oauth_email": oauth_email,
                    },
                ).mappings().first()
        if row is None:
            raise StoreUnavailableError(f"User {user_id} vanished during profile refresh.")
        return map_row_to_user_identity(row)

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
        update_sql = f"""
            UPDATE public.users
            SET oauth_provider = :provider,
                oauth_id = :provider_id,
                display_name = :display_name,
                avatar_url = :avatar_url,
                oauth_email = :oauth_email
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        event_sql = """
            INSERT INTO public.identity_link_events (
                user_id, email, previous_provider, previous_provider_id,
                new_provider, new_provider_id, occurred_at
            ) VALUES (
                :user_id, :email, :previous_provider, :previous_provider_id,
                :new_provider, :new_provider_id, :occurred_at
            )
        """
        with translate_store_errors("link_provider"):
            with self._engine.begin() as conn:
                row = conn.execute(
                    text(update_sql),
                    {
                        "user_id": user_id,
                        "provider": provider,
                        "provider_id": provider_id,
                        "display_name": display_name,
                        "avatar_url": avatar_url,
                        "oauth_email": oauth_email,
                    },
                ).mappings().first()
                if row is None:
                    raise StoreUnavailableError(f"User {user_id} vanished during provider link.")
                conn.execute(
                    text(event_sql),
                    {
                        "user_id": event.user_id,
                        "email": event.email,
                        "previous_provider": event.previous_provider,
                        "previous_provider_id": event.previous_provider_id,
                        "new_provider": event.new_provider,
                        "new_provider_id": event.new_provider_id,
                        "occurred_at": event.occurred_at,
                    },
                )
        return map_row_to_user_identity(row)

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
        sql = f"""
            INSERT INTO public.users (
                email, oauth_provider, oauth_id, display_name, avatar_url, oauth_email, stream_key
            ) VALUES (
                :email, :provider, :provider_id, :display_name, :avatar_url, :oauth_email, :stream_key
            )
            RETURNING {USER_COLUMNS}
        """
        with translate_store_errors("create_oauth_user", conflict_error=IdentityConflictError):
            with self._engine.begin() as conn:
                row = conn.execute(
                    text(sql),
                    {
                        "email": email,
                        "provider": provider,
                        "provider_id": provider_id,
                        "display_name": display_name,
                        "avatar_url": avatar_url,
                        "oauth_email": email,
                        "stream_key": stream_key,
                    },
                ).mappings().one()
        return map_row_to_user_identity(row)
