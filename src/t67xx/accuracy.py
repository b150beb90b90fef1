"""
Warm-up tracking for the T67XX.

From the datasheet:

    "The sensor is capable of responding to commands after power on, but
     operational accuracy of sensor won't happen until 120 sec have elapsed.
     The sensor will reach full accuracy / warm up after 10 min. of operation."

The sensor is assumed to have been powered since the host booted, so the
warm-up window is measured from the kernel boot timestamp (``btime`` in
/proc/stat). Only Linux exposes that file.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

WARMUP_SECONDS = 600
PROC_STAT = Path("/proc/stat")


class BootTimeError(ValueError):
    """Raised when the boot time source is present but unreadable."""


class BootTimeSource(Protocol):
    def read(self) -> Optional[int]:
        ...


class ProcStatBootTime:
    """Read the boot timestamp (seconds since the epoch) from /proc/stat."""

    def __init__(self, path: Path | str = PROC_STAT):
        self.path = Path(path)

    def read(self) -> Optional[int]:
        try:
            handle = self.path.open("r", encoding="ascii")
        except OSError as exc:
            logger.debug("Could not read %s: %s", self.path, exc)
            return None
        with handle:
            for line in handle:
                if not line.startswith("btime"):
                    continue
                raw = line[len("btime"):].strip()
                try:
                    return int(raw)
                except ValueError as exc:
                    raise BootTimeError(f"Malformed btime line in {self.path}: {line.strip()!r}") from exc
        logger.debug("No btime line in %s", self.path)
        return None


class AccuracyModel:
    def __init__(
        self,
        boot_time_source: Optional[BootTimeSource] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None,
        assume_warm_when_unknown: bool = True,
    ):
        self.boot_time_source = boot_time_source or ProcStatBootTime()
        self.clock = clock or time.time
        self._sleep = sleep or time.sleep
        self.log = logger or logging.getLogger(__name__)
        self.assume_warm_when_unknown = assume_warm_when_unknown

    def boot_time(self) -> Optional[int]:
        return self.boot_time_source.read()

    def seconds_since_boot(self) -> Optional[int]:
        boot = self.boot_time()
        if boot is None:
            return None
        return int(self.clock() - boot)

    def remaining_warmup(self) -> float:
        """
        Seconds until the sensor reaches full accuracy. Zero or negative once
        the warm-up window has passed.
        """
        boot = self.boot_time()
        if boot is None:
            if self.assume_warm_when_unknown:
                self.log.warning("Boot time unavailable, assuming the sensor has warmed up")
                return 0.0
            self.log.warning("Boot time unavailable, assuming the full %ds warm-up", WARMUP_SECONDS)
            return float(WARMUP_SECONDS)
        return (boot + WARMUP_SECONDS) - self.clock()

    def is_fully_accurate(self) -> bool:
        remaining = self.remaining_warmup()
        if remaining > 0:
            self.log.debug(
                "System boot was less than 10 minutes ago, full accuracy in %.0f seconds", remaining
            )
            return False
        self.log.debug("System boot was more than 10 minutes ago, sensor should be at full accuracy")
        return True

    def block_until_fully_accurate(self) -> None:
        """
        Sleep until the warm-up window has passed, or return at once if it
        already has. Meant for a background thread; it cannot be interrupted.
        """
        remaining = self.remaining_warmup()
        if remaining > 0:
            self.log.info("Sleeping %.0f seconds until full sensor accuracy", remaining)
            self._sleep(remaining)
        self.log.debug("Sensor should have reached full accuracy")
