"""Configuration helpers for the inventory generation job."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, Tuple

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")

DEFAULT_CHANNEL_KEYS: Tuple[str, ...] = (
    "WH-EU",
    "WH-US",
    "WH-ASIA",
    "STORE-BERLIN",
    "STORE-NYC",
)


def _coerce_int(value: object, default: int, minimum: int) -> int:
    try:
        return max(minimum, int(value))
    except (TypeError, ValueError):
        return default


def _coerce_float(value: object, default: float, minimum: float) -> float:
    try:
        return max(minimum, float(value))
    except (TypeError, ValueError):
        return default


@dataclass
class ChannelConfig:
    """Which channels inventory is generated for and how long to wait for them."""

    keys: Tuple[str, ...] = DEFAULT_CHANNEL_KEYS
    lookup_timeout_seconds: float = 300.0

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "ChannelConfig":
        if not data:
            return cls()
        raw_keys = data.get("keys")
        if isinstance(raw_keys, (list, tuple)):
            keys = tuple(str(key).strip() for key in raw_keys if str(key).strip())
        else:
            keys = cls.keys
        timeout = _coerce_float(
            data.get("lookup_timeout_seconds", cls.lookup_timeout_seconds),
            cls.lookup_timeout_seconds,
            1.0,
        )
        return cls(keys=keys or cls.keys, lookup_timeout_seconds=timeout)


@dataclass
class ReaderConfig:
    page_size: int = 50

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "ReaderConfig":
        if not data:
            return cls()
        return cls(page_size=_coerce_int(data.get("page_size", cls.page_size), cls.page_size, 1))


@dataclass
class WriterConfig:
    """Writer behaviour: tolerated failures and the adjustment label in Odoo."""

    skip_limit: int = 1
    adjustment_name: str = "Generated Inventory"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "WriterConfig":
        if not data:
            return cls()
        skip_limit = _coerce_int(data.get("skip_limit", cls.skip_limit), cls.skip_limit, 0)
        raw_name = data.get("adjustment_name")
        adjustment_name = str(raw_name).strip() if raw_name else cls.adjustment_name
        return cls(skip_limit=skip_limit, adjustment_name=adjustment_name or cls.adjustment_name)


@dataclass
class GenerationConfig:
    """Top-level configuration for the generation runner."""

    log_level: str = "INFO"
    channels: ChannelConfig = field(default_factory=ChannelConfig)
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    writer: WriterConfig = field(default_factory=WriterConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "GenerationConfig":
        log_level_value = data.get("log_level", cls.log_level)
        log_level = str(log_level_value).strip() or cls.log_level
        return cls(
            log_level=log_level.upper(),
            channels=ChannelConfig.from_mapping(_get_mapping(data, "channels")),
            reader=ReaderConfig.from_mapping(_get_mapping(data, "reader")),
            writer=WriterConfig.from_mapping(_get_mapping(data, "writer")),
        )


def load_config(path: Path | None = None) -> GenerationConfig:
    """Load generation configuration from YAML."""

    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return GenerationConfig()
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Generation configuration must be a mapping")
    return GenerationConfig.from_mapping(data)


def _get_mapping(data: Mapping[str, object], key: str) -> MutableMapping[str, object]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return dict(value)
    return {}


__all__ = [
    "DEFAULT_CHANNEL_KEYS",
    "DEFAULT_CONFIG_PATH",
    "ChannelConfig",
    "GenerationConfig",
    "ReaderConfig",
    "WriterConfig",
    "load_config",
]
