from __future__ import annotations

import pytest

from t67xx.bus import BusSettings, I2CDevice, TransportError


class FakeMsg:
    def __init__(self, kind: str, addr: int, data: list[int]):
        self.kind = kind
        self.addr = addr
        self.data = data

    def __iter__(self):
        return iter(self.data)


class FakeI2cMsg:
    def __init__(self, reply: list[int]):
        self.reply = reply

    def write(self, addr: int, data: list[int]) -> FakeMsg:
        return FakeMsg("write", addr, list(data))

    def read(self, addr: int, length: int) -> FakeMsg:
        return FakeMsg("read", addr, self.reply[:length])


class FakeSMBus:
    def __init__(self, bus: int):
        self.bus = bus
        self.transfers: list[FakeMsg] = []
        self.closed = False

    def i2c_rdwr(self, *msgs: FakeMsg) -> None:
        self.transfers.extend(msgs)

    def close(self) -> None:
        self.closed = True


class FakeSmbus2Module:
    def __init__(self, reply: list[int]):
        self.i2c_msg = FakeI2cMsg(reply)
        self.opened: list[FakeSMBus] = []

    def SMBus(self, bus: int) -> FakeSMBus:
        handle = FakeSMBus(bus)
        self.opened.append(handle)
        return handle


def test_write_and_read_use_raw_transfers(monkeypatch):
    fake = FakeSmbus2Module([0x04, 0x02, 0x01, 0x90])
    monkeypatch.setattr("t67xx.bus.smbus2", fake)

    with I2CDevice(BusSettings(bus=3, address=0x15)) as device:
        device.write(bytes([0x04, 0x13, 0x8B, 0x00, 0x01]))
        data = device.read(4)

    handle = fake.opened[0]
    assert handle.bus == 3
    assert handle.closed
    assert data == bytes([0x04, 0x02, 0x01, 0x90])
    kinds = [(msg.kind, msg.addr) for msg in handle.transfers]
    assert kinds == [("write", 0x15), ("read", 0x15)]
    assert handle.transfers[0].data == [0x04, 0x13, 0x8B, 0x00, 0x01]


def test_short_read_is_transport_error(monkeypatch):
    fake = FakeSmbus2Module([0x04, 0x02])
    monkeypatch.setattr("t67xx.bus.smbus2", fake)
    device = I2CDevice(BusSettings(address=0x15))
    with pytest.raises(TransportError):
        device.read(4)


def test_missing_smbus2_is_transport_error(monkeypatch):
    monkeypatch.setattr("t67xx.bus.smbus2", None)
    with pytest.raises(TransportError):
        I2CDevice(BusSettings())


def test_bus_settings_device_path():
    assert BusSettings(bus=1).device_path == "/dev/i2c-1"
    assert isinstance(TransportError("x"), OSError)
