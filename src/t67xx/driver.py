"""
Command/response driver for the Telaire T67XX CO₂ sensor.

Every read command follows the same cycle: write the fixed command bytes,
wait for the sensor to prepare its answer, then read a fixed-length response.
From the datasheet:

    "It is suggested that the master send the request, wait 5 to 10
     milliseconds and then ask for the response. [...] The suggested delay
     of 10 milliseconds should be adequate for almost all conceivable cases."
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .bitmask import Bitmask, bit_table
from .bus import Bus

COMMAND_SLEEP = 0.010
ADDRESS_SETTLE_SEC = 1.0

MIN_ADDRESS = 0x03
MAX_ADDRESS = 0x77

STATUS_ERROR = 0x0001
STATUS_FLASH_ERROR = 0x0002
STATUS_CALIBRATION_ERROR = 0x0004
STATUS_RS232 = 0x0100
STATUS_RS485 = 0x0200
STATUS_I2C = 0x0400
STATUS_WARMUP = 0x0800
STATUS_SINGLE_POINT_CALIBRATION = 0x8000

STATUS_BITS = bit_table(
    [
        (STATUS_ERROR, "Error condition"),
        (STATUS_FLASH_ERROR, "Flash error"),
        (STATUS_CALIBRATION_ERROR, "Calibration error"),
        (STATUS_RS232, "RS-232"),
        (STATUS_RS485, "RS-485"),
        (STATUS_I2C, "I2C"),
        (STATUS_WARMUP, "Warm-up mode"),
        (STATUS_SINGLE_POINT_CALIBRATION, "Single point calibration"),
    ]
)


class AddressError(ValueError):
    """Raised for a bus address outside the range the sensor accepts."""


@dataclass(frozen=True)
class Command:
    name: str
    payload: bytes
    response_length: int = 0


CMD_FIRMWARE = Command("firmware", bytes([0x04, 0x13, 0x89, 0x00, 0x01]), 4)
CMD_STATUS = Command("status", bytes([0x04, 0x13, 0x8A, 0x00]), 2)
CMD_GAS_PPM = Command("gas_ppm", bytes([0x04, 0x13, 0x8B, 0x00, 0x01]), 4)
CMD_RESET = Command("reset", bytes([0x05, 0x03, 0xE8, 0xFF, 0x00]))
CMD_ENABLE_ABC = Command("enable_abc", bytes([0x05, 0x03, 0xEE, 0xFF, 0x00]))
SET_ADDRESS_PREFIX = bytes([0x06, 0x0F, 0xA5, 0x00])


def validate_address(address: int) -> int:
    if not MIN_ADDRESS <= address <= MAX_ADDRESS:
        raise AddressError(
            f"Address should be in the range 0x{MIN_ADDRESS:02x} -> 0x{MAX_ADDRESS:02x}, "
            f"you requested address 0x{address:x}"
        )
    return address


def set_address_command(address: int) -> Command:
    return Command("set_address", SET_ADDRESS_PREFIX + bytes([validate_address(address)]))


@dataclass(frozen=True)
class SensorStatus:
    mask: Bitmask

    @classmethod
    def from_bytes(cls, data: bytes) -> "SensorStatus":
        return cls(Bitmask(int.from_bytes(data[:2], "big")))

    @property
    def descriptions(self) -> List[str]:
        return self.mask.list_descriptions(STATUS_BITS)

    @property
    def values(self) -> List[int]:
        return self.mask.list_values(STATUS_BITS)

    @property
    def error(self) -> bool:
        return self.mask.is_set(STATUS_ERROR)

    @property
    def warming_up(self) -> bool:
        return self.mask.is_set(STATUS_WARMUP)

    def __str__(self) -> str:
        return ", ".join(self.descriptions)


class T67XX:
    """
    Driver for one T67XX sensor on an already-open bus device.

    The driver holds no lock: a write/read pair issued from two threads on the
    same device interleaves the responses, so callers sharing a sensor must
    serialise access themselves. Bus errors propagate unchanged and are never
    retried.
    """

    def __init__(
        self,
        device: Bus,
        logger: Optional[logging.Logger] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.device = device
        self.log = logger or logging.getLogger(__name__)
        self._sleep = sleep or time.sleep

    def _execute(self, command: Command) -> bytes:
        self.device.write(command.payload)
        if not command.response_length:
            return b""
        self._sleep(COMMAND_SLEEP)
        return self.device.read(command.response_length)

    def firmware_version(self) -> int:
        # The sensor answers this command but the bytes do not carry a usable
        # version, so a successful read reports 1.
        data = self._execute(CMD_FIRMWARE)
        self.log.debug("Read firmware version bytes: %s", list(data))
        self.log.debug("Raw firmware version bytes: %s", _bits(data))
        return 1

    def gas_ppm(self) -> int:
        """Return the CO₂ concentration in parts per million."""
        data = self._execute(CMD_GAS_PPM)
        return data[2] * 256 + data[3]

    def status(self) -> SensorStatus:
        data = self._execute(CMD_STATUS)
        self.log.debug("Read status bytes: %s", list(data))
        self.log.debug("Raw status bytes: %s", _bits(data))
        status = SensorStatus.from_bytes(data)
        self.log.debug("Status bits set: %s", status)
        return status

    def reset(self) -> None:
        """
        Reset the sensor. The sensor needs time to come back up before it
        answers again; nothing here waits for that.
        """
        self._execute(CMD_RESET)

    def enable_abc(self) -> None:
        """
        Enable Automatic Background Logic calibration. From the datasheet:

            "With ABC Logic™ enabled, the sensor will typically reach its
             operational accuracy after 24 hours of continuous operation at
             a condition that it was exposed to ambient reference levels of
             air at 400 ppm CO2."
        """
        self._execute(CMD_ENABLE_ABC)

    def set_address(self, address: int) -> None:
        """
        Move the sensor to a new bus address and reset it so the change takes
        effect. Blocks for about two seconds. The device handle stays bound to
        the old address; reopen it at the new one afterwards.
        """
        command = set_address_command(address)
        self.log.debug("Changing sensor address to 0x%02X", address)
        self._execute(command)
        self._sleep(ADDRESS_SETTLE_SEC)  # EEPROM commit
        self.reset()
        self._sleep(ADDRESS_SETTLE_SEC)  # reboot


def _bits(data: bytes) -> str:
    return " ".join(f"{byte:08b}" for byte in data)
