from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .accuracy import AccuracyModel
from .config import MonitorSettings
from .driver import T67XX

logger = logging.getLogger(__name__)


@dataclass
class Reading:
    """One CO₂ sample from the monitor loop."""

    ts: float
    ppm: int
    in_bounds: bool


class AccuracyWaiter(threading.Thread):
    """Waits out the warm-up window in the background and then sets `ready`."""

    def __init__(self, accuracy: AccuracyModel):
        super().__init__(daemon=True, name="t67xx-accuracy")
        self.accuracy = accuracy
        self.ready = threading.Event()
        self.last_exception: Optional[Exception] = None

    def run(self) -> None:
        try:
            self.accuracy.block_until_fully_accurate()
        except Exception as exc:
            self.last_exception = exc
            logger.error("Error sleeping until full accuracy: %s", exc)
            return
        self.ready.set()


class SensorMonitor:
    """
    Read loop that discards readings taken before the sensor warmed up and
    flags readings outside the plausible range. Some sensors report spurious
    values well above the 5000 ppm measurement limit.
    """

    def __init__(
        self,
        driver: T67XX,
        accuracy: AccuracyModel,
        settings: Optional[MonitorSettings] = None,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.driver = driver
        self.accuracy = accuracy
        self.settings = settings or MonitorSettings()
        self._sleep = sleep or time.sleep
        self._clock = clock or time.time
        self._callbacks: List[Callable[[Reading], None]] = []
        self.waiter: Optional[AccuracyWaiter] = None
        self._ready = threading.Event()
        self._skipped = 0
        self._out_of_bounds = 0

    def register_callback(self, callback: Callable[[Reading], None]) -> None:
        self._callbacks.append(callback)

    def start(self) -> None:
        if self.waiter is not None or self._ready.is_set():
            return
        if not self.settings.wait_for_accuracy:
            self._ready.set()
            return
        self.waiter = AccuracyWaiter(self.accuracy)
        self._ready = self.waiter.ready
        self.waiter.start()

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    def poll(self) -> Optional[Reading]:
        if not self._ready.is_set():
            if self.waiter is not None and self.waiter.last_exception is not None:
                raise self.waiter.last_exception
            self._skipped += 1
            logger.info("Skipping CO₂ reading as the sensor has not yet achieved full accuracy")
            return None
        ppm = self.driver.gas_ppm()
        in_bounds = self.settings.ppm_min <= ppm <= self.settings.ppm_max
        if in_bounds:
            logger.info("Got CO₂ reading of %d ppm", ppm)
        else:
            self._out_of_bounds += 1
            logger.warning("Reading of %d ppm from CO₂ sensor was out of allowed bounds", ppm)
        reading = Reading(ts=self._clock(), ppm=ppm, in_bounds=in_bounds)
        for callback in self._callbacks:
            callback(reading)
        return reading

    def run(self, max_readings: Optional[int] = None) -> List[Reading]:
        """
        Poll the sensor every `interval_sec` until interrupted or until
        `max_readings` readings have been taken.
        """
        self.start()
        readings: List[Reading] = []
        try:
            while max_readings is None or len(readings) < max_readings:
                reading = self.poll()
                if reading is not None:
                    readings.append(reading)
                    if max_readings is not None and len(readings) >= max_readings:
                        break
                self._sleep(self.settings.interval_sec)
        except KeyboardInterrupt:
            logger.info("Stopping monitor (Ctrl+C)")
        finally:
            logger.info(
                "Final stats: readings=%d skipped=%d out_of_bounds=%d",
                len(readings),
                self._skipped,
                self._out_of_bounds,
            )
        return readings

    def stats(self) -> dict[str, int]:
        return {"skipped": self._skipped, "out_of_bounds": self._out_of_bounds}
