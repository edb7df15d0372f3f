"""Production Time implementation reading the system clock."""

from datetime import UTC, datetime

from specstack.core.time.abc import Time


class RealTime(Time):
    """Production implementation using the system clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)
