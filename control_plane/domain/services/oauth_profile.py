"""Translate provider-specific profile payloads into :class:`OAuthProfile`.

Google answers either with OpenID claims (``sub``, ``email``, ``name``,
``picture``) or with the people-style shape (``id``, ``displayName``,
``emails[0].value``, ``photos[0].value``). Twitch answers with a Helix user
object (``id``, ``display_name``, ``login``, ``email``,
``profile_image_url``).

A missing email or avatar degrades to ``None``. Only a missing subject
identifier is fatal, because nothing can be matched without it.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from control_plane.domain.entities.oauth_profile import OAuthProfile
from control_plane.domain.exceptions import ProviderProfileMalformedError


logger = logging.getLogger(__name__)


def normalize_google_profile(raw: Mapping[str, Any]) -> OAuthProfile:
    provider_id = _clean(raw.get("sub")) or _clean(raw.get("id"))
    if not provider_id:
        raise ProviderProfileMalformedError("Google profile has no subject identifier.")

    email = _clean(raw.get("email")) or _first_value(raw.get("emails"))
    display_name = _clean(raw.get("name")) or _clean(raw.get("displayName"))
    avatar_url = _clean(raw.get("picture")) or _first_value(raw.get("photos"))

    if email is None:
        logger.info("oauth_profile: google_profile_without_email provider_id=%s", provider_id)

    return OAuthProfile(
        provider="google",
        provider_id=provider_id,
        email=email,
        display_name=display_name,
        avatar_url=avatar_url,
    )


def normalize_twitch_profile(raw: Mapping[str, Any]) -> OAuthProfile:
    provider_id = _clean(raw.get("id"))
    if not provider_id:
        raise ProviderProfileMalformedError("Twitch profile has no user id.")

    email = _clean(raw.get("email"))
    display_name = _clean(raw.get("display_name")) or _clean(raw.get("login"))
    avatar_url = _clean(raw.get("profile_image_url"))

    if email is None:
        logger.info("oauth_profile: twitch_profile_without_email provider_id=%s", provider_id)

    return OAuthProfile(
        provider="twitch",
        provider_id=provider_id,
        email=email,
        display_name=display_name,
        avatar_url=avatar_url,
    )


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first_value(items: Any) -> str | None:
    if not isinstance(items, (list, tuple)) or not items:
        return None
    first = items[0]
    if isinstance(first, Mapping):
        return _clean(first.get("value"))
    return _clean(first)
