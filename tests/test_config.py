from __future__ import annotations

import json
from pathlib import Path

import pytest

from sermeas.acq.config import AcquisitionConfig, load_config
from sermeas.reporting import dat_path


def write_config(tmp_path: Path, data: dict) -> Path:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps(data), encoding="utf-8")
    return cfg_path


def test_defaults_without_file():
    cfg = load_config()
    assert isinstance(cfg, AcquisitionConfig)
    assert cfg.mode == "text"
    assert cfg.serial.baudrate == 115200
    assert cfg.timing.line_timeout_ms == 1000
    assert cfg.timing.line_max_length == 32
    assert cfg.output_name is None


def test_load_config_overrides(tmp_path: Path) -> None:
    cfg_path = write_config(
        tmp_path,
        {
            "mode": "text",
            "sample_count": 10,
            "serial": {"port": "/dev/ttyUSB1", "baudrate": 9600},
            "timing": {"idle_timeout_s": 2.5},
        },
    )
    cfg = load_config(
        cfg_path,
        overrides=["mode=BINARY", "serial.baudrate=230400", "timing.idle_timeout_s=null"],
    )
    assert cfg.mode == "binary"
    assert cfg.sample_count == 10
    assert cfg.serial.port == "/dev/ttyUSB1"
    assert cfg.serial.baudrate == 230400
    assert cfg.timing.idle_timeout_s is None


def test_shipped_host_config_loads() -> None:
    cfg = load_config(Path("host/config.json"))
    assert cfg.mode == "binary"
    assert cfg.serial.startup_delay_ms == 2000


@pytest.mark.parametrize(
    "override",
    ["mode=hex", "sample_count=0", "timing.line_max_length=0", "timing.idle_timeout_s=-1"],
)
def test_invalid_values_rejected(override: str) -> None:
    with pytest.raises(ValueError):
        load_config(overrides=[override])


def test_override_requires_key_value() -> None:
    with pytest.raises(ValueError, match="key=value"):
        load_config(overrides=["mode"])


@pytest.mark.parametrize("raw", ["42", "1e3", "run.01"])
def test_output_name_override_stays_text(raw: str) -> None:
    cfg = load_config(overrides=[f"output_name={raw}"])
    assert cfg.output_name == raw


def test_numeric_output_name_in_json(tmp_path: Path) -> None:
    cfg = load_config(write_config(tmp_path, {"output_name": 7, "serial": {"port": 3}}))
    assert cfg.output_name == "7"
    assert cfg.serial.port == "3"
    assert dat_path(cfg.output_name, tmp_path) == tmp_path / "7.dat"
