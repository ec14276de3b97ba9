from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ProviderRelinkedEvent:
    """An OAuth provider was attached to an existing account matched by email.

    ``previous_provider`` is ``None`` when a password-only account gains its
    first provider. The previous values are kept so an operator can restore
    the account's former login provider.
    """

    user_id: int
    email: str
    previous_provider: str | None
    previous_provider_id: str | None
    new_provider: str
    new_provider_id: str
    occurred_at: datetime

    @property
    def displaces_provider(self) -> bool:
        return self.previous_provider is not None and (
            self.previous_provider != self.new_provider
            or self.previous_provider_id != self.new_provider_id
        )
