"""Fake Time implementation for testing.

FakeTime returns a fixed instant, optionally advancing by a fixed step on
every call so ordering between successive timestamps can be asserted.
"""

from datetime import UTC, datetime, timedelta

from specstack.core.time.abc import Time

DEFAULT_FAKE_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


class FakeTime(Time):
    """In-memory fake implementation with a controllable clock.

    This class has NO public setup methods. All state is provided via constructor
    or captured during execution.
    """

    def __init__(
        self,
        *,
        start: datetime = DEFAULT_FAKE_NOW,
        step: timedelta | None = None,
    ) -> None:
        """Create FakeTime.

        Args:
            start: First value returned by now()
            step: Amount the clock advances after each now() call (None = frozen)
        """
        self._current = start
        self._step = step
        self._now_calls = 0

    @property
    def now_calls(self) -> int:
        """Number of times now() was called.

        This property is for test assertions only.
        """
        return self._now_calls

    def now(self) -> datetime:
        value = self._current
        self._now_calls += 1
        if self._step is not None:
            self._current = self._current + self._step
        return value
