from __future__ import annotations

from typing import List, Tuple


class FakeBus:
    """Records writes, reads and sleeps in one ordered event list."""

    def __init__(self, responses: List[bytes] | None = None, events: list | None = None):
        self.responses = list(responses or [])
        self.events: List[Tuple[str, object]] = events if events is not None else []
        self.fail_write: Exception | None = None
        self.fail_read: Exception | None = None

    def write(self, data: bytes) -> None:
        if self.fail_write is not None:
            raise self.fail_write
        self.events.append(("write", bytes(data)))

    def read(self, length: int) -> bytes:
        if self.fail_read is not None:
            raise self.fail_read
        data = self.responses.pop(0)
        assert len(data) == length
        self.events.append(("read", length))
        return data

    def sleep(self, seconds: float) -> None:
        self.events.append(("sleep", seconds))

    @property
    def writes(self) -> List[bytes]:
        return [payload for kind, payload in self.events if kind == "write"]


class FakeClock:
    def __init__(self, now: float):
        self.now = now
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FixedBootTime:
    def __init__(self, value: int | None):
        self.value = value
        self.reads = 0

    def read(self) -> int | None:
        self.reads += 1
        return self.value
