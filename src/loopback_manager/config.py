"""
Configuration loading and merging helpers.
"""

from __future__ import annotations

import json
import logging
import os
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .ipam import AddressRange
from .ledger import DEFAULT_LEDGER_PATH

log = logging.getLogger(__name__)

CONFIG_DIR = pathlib.Path("~/.config/loopback-manager")
BASE_DIR_ENV = "GITHUB_BASE_DIR"


@dataclass
class IpRangeSettings:
    base: str = "127.0.0"
    start: int = 10
    end: int = 254
    strict: bool = False

    def to_range(self) -> AddressRange:
        return AddressRange(base=self.base, start=self.start, end=self.end)


@dataclass
class AppConfig:
    base_dir: pathlib.Path = field(default_factory=lambda: expand_path("~/github"))
    ip_range: IpRangeSettings = field(default_factory=IpRangeSettings)
    ledger_path: pathlib.Path = field(default_factory=lambda: DEFAULT_LEDGER_PATH.expanduser())

    @property
    def address_range(self) -> AddressRange:
        return self.ip_range.to_range()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        defaults = cls()
        range_data = data.get("ip_range") or {}
        if not isinstance(range_data, dict):
            raise ValueError("ip_range must be a mapping")

        base = str(range_data.get("base", defaults.ip_range.base)).rstrip(".")
        start = _as_octet(range_data.get("start", defaults.ip_range.start), "ip_range.start")
        end = _as_octet(range_data.get("end", defaults.ip_range.end), "ip_range.end")
        if start > end:
            raise ValueError(f"ip_range.start ({start}) must not exceed ip_range.end ({end})")
        if len(base.split(".")) != 3:
            raise ValueError(f"ip_range.base must have three octets, got '{base}'")

        base_dir = data.get("base_dir")
        ledger_path = data.get("ledger_path")
        return cls(
            base_dir=expand_path(base_dir) if base_dir else defaults.base_dir,
            ip_range=IpRangeSettings(
                base=base,
                start=start,
                end=end,
                strict=bool(range_data.get("strict", False)),
            ),
            ledger_path=expand_path(ledger_path) if ledger_path else defaults.ledger_path,
        )


def expand_path(path: Any) -> pathlib.Path:
    return pathlib.Path(os.path.expanduser(str(path)))


def default_config_path() -> pathlib.Path:
    return CONFIG_DIR.expanduser() / "config.yaml"


def load_config_file(path: str) -> Dict[str, Any]:
    """
    Load a YAML or JSON config file.
    """
    config_path = pathlib.Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    text = config_path.read_text(encoding="utf-8")
    if config_path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("Config file must define a mapping at the top level")
    return data


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combine two config dictionaries, keeping override values when provided.
    Nested mappings are merged one level deep.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
    """
    Resolve configuration: defaults, then GITHUB_BASE_DIR, then the config
    file, then explicit overrides. Only an explicitly named file must exist.
    """
    data: Dict[str, Any] = {}
    env_base = os.environ.get(BASE_DIR_ENV)
    if env_base:
        data["base_dir"] = env_base

    if path:
        data = merge_config(data, load_config_file(path))
        log.info("Using config file: %s", path)
    else:
        candidate = default_config_path()
        if candidate.exists():
            data = merge_config(data, load_config_file(str(candidate)))
            log.info("Using config file: %s", candidate)

    data = merge_config(data, overrides or {})
    return AppConfig.from_dict(data)


def _as_octet(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if not 0 <= number <= 255:
        raise ValueError(f"{name} must be between 0 and 255, got {number}")
    return number
