from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

try:
    import smbus2  # type: ignore[import]
except ImportError:  # pragma: no cover - handled when a device is opened
    smbus2 = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

DEFAULT_BUS = 1
DEFAULT_ADDRESS = 0x15


class TransportError(OSError):
    """Raised when the bus cannot deliver the requested bytes."""


class Bus(Protocol):
    def write(self, data: bytes) -> None:
        ...

    def read(self, length: int) -> bytes:
        ...


@dataclass
class BusSettings:
    bus: int = DEFAULT_BUS
    address: int = DEFAULT_ADDRESS

    @property
    def device_path(self) -> str:
        return f"/dev/i2c-{self.bus}"


class I2CDevice:
    """
    Raw I2C transfers against a single device address.

    The T67XX speaks a Modbus-like framing over plain I2C writes and reads, so
    every transfer goes through i2c_rdwr rather than the SMBus register calls.
    """

    def __init__(self, settings: BusSettings, handle: Optional[object] = None):
        if handle is None:
            if smbus2 is None:
                raise TransportError("smbus2 is required but not installed")
            handle = smbus2.SMBus(settings.bus)
        self.settings = settings
        self._handle = handle
        logger.debug("Opened %s for device 0x%02X", settings.device_path, settings.address)

    @property
    def address(self) -> int:
        return self.settings.address

    def write(self, data: bytes) -> None:
        msg = smbus2.i2c_msg.write(self.address, list(data))
        self._handle.i2c_rdwr(msg)

    def read(self, length: int) -> bytes:
        msg = smbus2.i2c_msg.read(self.address, length)
        self._handle.i2c_rdwr(msg)
        data = bytes(list(msg))
        if len(data) != length:
            raise TransportError(
                f"Short read from 0x{self.address:02X}: expected {length} bytes, got {len(data)}"
            )
        return data

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "I2CDevice":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_device(settings: BusSettings) -> I2CDevice:
    return I2CDevice(settings)
