from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

MODES = {"binary", "text"}
# Overrides for these keys are kept as literal text
STRING_KEYS = {"mode", "output_name", "output_dir", "serial.port"}


@dataclass
class SerialConfig:
    port: str = "/dev/ttyACM0"
    baudrate: int = 115200
    read_timeout_s: float = 0.1
    startup_delay_ms: int = 0


@dataclass
class TimingConfig:
    line_timeout_ms: int = 1000
    line_max_length: int = 32
    idle_timeout_s: Optional[float] = 5.0  # None waits forever for binary input


@dataclass
class AcquisitionConfig:
    mode: str = "text"  # text | binary
    sample_count: int = 100
    output_name: Optional[str] = None
    output_dir: Path = field(default_factory=Path)
    serial: SerialConfig = field(default_factory=SerialConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)

    @property
    def mode_enum(self) -> str:
        mode = self.mode.lower()
        if mode not in MODES:
            raise ValueError(f"Unsupported mode '{self.mode}'")
        return mode

    def validate(self) -> "AcquisitionConfig":
        self.mode = self.mode_enum
        if self.sample_count < 1:
            raise ValueError("sample_count must be a positive integer")
        if self.serial.baudrate <= 0:
            raise ValueError("serial.baudrate must be positive")
        if self.timing.line_max_length < 1:
            raise ValueError("timing.line_max_length must be at least 1")
        if self.timing.idle_timeout_s is not None and self.timing.idle_timeout_s <= 0:
            raise ValueError("timing.idle_timeout_s must be positive or null")
        return self


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {**base}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)  # type: ignore[index]
        else:
            merged[key] = value
    return merged


def load_config(
    path: Path | str | None = None, overrides: Sequence[str] | None = None
) -> AcquisitionConfig:
    """
    Load an acquisition configuration from JSON and apply CLI-style overrides.

    Overrides are expressed as dotted `key=value` pairs, e.g.:
        ["mode=binary", "serial.baudrate=230400", "timing.idle_timeout_s=null"]

    Without a path the built-in defaults are used as the base.
    """
    data = _load_json(Path(path)) if path is not None else {}
    override_data: Dict[str, Any] = {}
    for override in overrides or []:
        key, raw_value = _parse_override(override)
        _assign_nested(override_data, key, raw_value)
    merged = _merge(data, override_data)
    serial_data = merged.get("serial") or {}
    timing_data = merged.get("timing") or {}
    idle_timeout = timing_data.get("idle_timeout_s", 5.0)
    return AcquisitionConfig(
        mode=str(merged.get("mode", "text")),
        sample_count=int(merged.get("sample_count", 100)),
        output_name=str(merged["output_name"]) if merged.get("output_name") is not None else None,
        output_dir=Path(merged.get("output_dir") or "."),
        serial=SerialConfig(
            port=str(serial_data.get("port", "/dev/ttyACM0")),
            baudrate=int(serial_data.get("baudrate", 115200)),
            read_timeout_s=float(serial_data.get("read_timeout_s", 0.1)),
            startup_delay_ms=int(serial_data.get("startup_delay_ms", 0)),
        ),
        timing=TimingConfig(
            line_timeout_ms=int(timing_data.get("line_timeout_ms", 1000)),
            line_max_length=int(timing_data.get("line_max_length", 32)),
            idle_timeout_s=float(idle_timeout) if idle_timeout is not None else None,
        ),
    ).validate()


def _parse_override(item: str) -> tuple[str, Any]:
    if "=" not in item:
        raise ValueError(f"Override '{item}' must use key=value syntax")
    key, raw_value = item.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError("Override key may not be empty")
    raw_value = raw_value.strip()
    value = raw_value if key in STRING_KEYS else _coerce_value(raw_value)
    return key, value


def _coerce_value(raw: str) -> Any:
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    if raw.lower() in {"null", "none"}:
        return None
    try:
        if "." in raw or "e" in raw.lower():
            return float(raw)
        return int(raw)
    except ValueError:
        pass
    return raw


def _assign_nested(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    cursor = target
    parts = dotted_key.split(".")
    for part in parts[:-1]:
        cursor = cursor.setdefault(part, {})
    cursor[parts[-1]] = value
