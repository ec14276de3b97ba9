from __future__ import annotations

import logging
from typing import Any

import httpx

from control_plane.domain.exceptions import OAuthExchangeError


logger = logging.getLogger(__name__)


def request_json(
    method: str,
    url: str,
    *,
    provider: str,
    timeout_seconds: float,
    **kwargs: Any,
) -> dict:
    try:
        with httpx.Client(timeout=timeout_seconds) as client:
            response = client.request(method, url, **kwargs)
            response.raise_for_status()
            payload = response.json()
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "oauth_http: provider_rejected provider=%s url=%s status=%s",
            provider,
            url,
            exc.response.status_code,
        )
        raise OAuthExchangeError(f"{provider} rejected the request.") from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning(
            "oauth_http: request_failed provider=%s url=%s error=%s",
            provider,
            url,
            exc,
        )
        raise OAuthExchangeError(f"{provider} request failed.") from exc

    if not isinstance(payload, dict):
        raise OAuthExchangeError(f"{provider} returned an unexpected payload.")
    return payload
