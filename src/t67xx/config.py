from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Sequence

from .accuracy import PROC_STAT
from .bus import DEFAULT_ADDRESS, DEFAULT_BUS, BusSettings
from .driver import validate_address


@dataclass
class MonitorSettings:
    interval_sec: float = 10.0
    ppm_min: int = 200
    ppm_max: int = 5000
    wait_for_accuracy: bool = True


@dataclass
class SensorConfig:
    bus: int = DEFAULT_BUS
    address: int = DEFAULT_ADDRESS
    enable_abc: bool = False
    boot_time_path: Path = PROC_STAT
    assume_warm_when_unknown: bool = True
    monitor: MonitorSettings = field(default_factory=MonitorSettings)

    @property
    def bus_settings(self) -> BusSettings:
        return BusSettings(bus=self.bus, address=self.address)


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {**base}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)
        else:
            merged[key] = value
    return merged


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 0)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    raise ValueError(f"{name} must be true or false, got {value!r}")


def load_config(path: Path | str | None = None, overrides: Sequence[str] | None = None) -> SensorConfig:
    """
    Load the sensor configuration from JSON and apply CLI-style overrides.

    Overrides are dotted `key=value` pairs, e.g.:
        ["address=0x22", "monitor.interval_sec=5"]
    Without a path the built-in defaults are used as the base.
    """
    data: Dict[str, Any] = _load_json(Path(path)) if path is not None else {}
    override_data: Dict[str, Any] = {}
    for override in overrides or []:
        key, raw_value = _parse_override(override)
        _assign_nested(override_data, key, raw_value)
    merged = _merge(data, override_data)
    monitor_data = merged.get("monitor") or {}
    monitor = MonitorSettings(
        interval_sec=float(monitor_data.get("interval_sec", 10.0)),
        ppm_min=_as_int(monitor_data.get("ppm_min", 200), "monitor.ppm_min"),
        ppm_max=_as_int(monitor_data.get("ppm_max", 5000), "monitor.ppm_max"),
        wait_for_accuracy=_as_bool(monitor_data.get("wait_for_accuracy", True), "monitor.wait_for_accuracy"),
    )
    if monitor.interval_sec <= 0:
        raise ValueError("monitor.interval_sec must be positive")
    if monitor.ppm_min > monitor.ppm_max:
        raise ValueError("monitor.ppm_min must not exceed monitor.ppm_max")
    return SensorConfig(
        bus=_as_int(merged.get("bus", DEFAULT_BUS), "bus"),
        address=validate_address(_as_int(merged.get("address", DEFAULT_ADDRESS), "address")),
        enable_abc=_as_bool(merged.get("enable_abc", False), "enable_abc"),
        boot_time_path=Path(merged.get("boot_time_path", PROC_STAT)),
        assume_warm_when_unknown=_as_bool(
            merged.get("assume_warm_when_unknown", True), "assume_warm_when_unknown"
        ),
        monitor=monitor,
    )


def _parse_override(item: str) -> tuple[str, Any]:
    if "=" not in item:
        raise ValueError(f"Override '{item}' must use key=value syntax")
    key, raw_value = item.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError("Override key may not be empty")
    return key, _coerce_value(raw_value.strip())


def _coerce_value(raw: str) -> Any:
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    try:
        if raw.lower().startswith("0x"):
            return int(raw, 16)
        if "." in raw or "e" in raw.lower():
            return float(raw)
        return int(raw)
    except ValueError:
        pass
    if raw.startswith("{") and raw.endswith("}"):
        return json.loads(raw)
    return raw


def _assign_nested(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    cursor = target
    parts = dotted_key.split(".")
    for part in parts[:-1]:
        cursor = cursor.setdefault(part, {})
    cursor[parts[-1]] = value
