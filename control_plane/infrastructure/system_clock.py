from __future__ import annotations

from datetime import datetime, timezone

from control_plane.application.ports.clock_port import ClockPort


class SystemClock(ClockPort):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
