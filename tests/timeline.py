"""Fixed instants and a controllable clock shared by the tests."""

from roster_time import require_ts, shift_ts

NOW = "2024-03-15 12:00:00"
YESTERDAY = "2024-03-14 12:00:00"
LAST_WEEK = "2024-03-08 12:00:00"
NEXT_WEEK = "2024-03-22 12:00:00"


class FakeClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, value: str = NOW):
        self.value = require_ts(value)

    def __call__(self) -> str:
        return self.value

    def advance(self, **delta) -> str:
        self.value = shift_ts(self.value, **delta)
        return self.value

    def set(self, value) -> str:
        self.value = require_ts(value)
        return self.value
