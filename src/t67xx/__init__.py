"""Driver for the Telaire T67XX CO₂ sensor."""

from importlib.metadata import PackageNotFoundError, version

from .accuracy import WARMUP_SECONDS, AccuracyModel, BootTimeError, ProcStatBootTime
from .bitmask import Bitmask, BitValue
from .bus import BusSettings, I2CDevice, TransportError, open_device
from .driver import STATUS_BITS, T67XX, AddressError, SensorStatus

try:  # pragma: no cover - fallback when package metadata missing
    __version__ = version("t67xx")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AccuracyModel",
    "AddressError",
    "Bitmask",
    "BitValue",
    "BootTimeError",
    "BusSettings",
    "I2CDevice",
    "ProcStatBootTime",
    "SensorStatus",
    "STATUS_BITS",
    "T67XX",
    "TransportError",
    "WARMUP_SECONDS",
    "open_device",
]
