from __future__ import annotations

import json
from pathlib import Path

import pytest

from t67xx.config import MonitorSettings, SensorConfig, load_config

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config" / "sensor.json"


def test_defaults_without_file():
    cfg = load_config()
    assert cfg == SensorConfig()
    assert cfg.monitor == MonitorSettings()
    assert cfg.bus_settings.address == 0x15


def test_repo_config_loads():
    cfg = load_config(REPO_CONFIG)
    assert cfg.address == 0x15
    assert cfg.monitor.ppm_min == 200
    assert cfg.monitor.ppm_max == 5000


def test_overrides_are_applied(tmp_path: Path):
    path = tmp_path / "sensor.json"
    path.write_text(json.dumps({"bus": 0, "monitor": {"interval_sec": 30}}), encoding="utf-8")
    cfg = load_config(
        path,
        ["address=0x22", "monitor.interval_sec=2.5", "monitor.wait_for_accuracy=false", "enable_abc=true"],
    )
    assert cfg.bus == 0
    assert cfg.address == 0x22
    assert cfg.enable_abc is True
    assert cfg.monitor.interval_sec == 2.5
    assert cfg.monitor.wait_for_accuracy is False
    assert cfg.monitor.ppm_max == 5000


def test_invalid_address_rejected():
    with pytest.raises(ValueError, match="0x03 -> 0x77"):
        load_config(overrides=["address=0x78"])


def test_malformed_override_rejected():
    with pytest.raises(ValueError, match="key=value"):
        load_config(overrides=["address"])


def test_inverted_bounds_rejected():
    with pytest.raises(ValueError, match="ppm_min"):
        load_config(overrides=["monitor.ppm_min=6000"])


def test_non_object_json_rejected(tmp_path: Path):
    path = tmp_path / "sensor.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
