"""Editor configuration: defaults, JSON files and environment overrides.

Environment variables (all optional) override file values:
THAANASTREAM_LAYOUT, THAANASTREAM_ENABLED, THAANASTREAM_EMIT_EVENTS,
THAANASTREAM_FLUSH_TIMEOUT_MS, THAANASTREAM_FALLBACK_THRESHOLD,
THAANASTREAM_PRUNE_EVERY, THAANASTREAM_STAT_WINDOW, THAANASTREAM_STRICT.
"""

import json
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, FrozenSet, Mapping, Optional, Union

from thaanastream.errors import ConfigError
from thaanastream.models import AKURU, FILI, IMMEDIATE_CHARS, SymbolSets

ENV_PREFIX = "THAANASTREAM_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class ImeConfig:
    layout: Union[str, Dict[str, str]] = "standard"
    consonants: FrozenSet[str] = AKURU
    vowel_signs: FrozenSet[str] = FILI
    immediate: FrozenSet[str] = IMMEDIATE_CHARS
    enabled: bool = True
    emit_events: bool = True
    flush_timeout_ms: float = 500.0
    burst_window: int = 32

    def symbol_sets(self) -> SymbolSets:
        return SymbolSets(
            consonants=frozenset(self.consonants),
            vowel_signs=frozenset(self.vowel_signs),
            immediate=frozenset(self.immediate),
        )


@dataclass
class SerializerConfig:
    incremental: bool = True
    fallback_threshold: float = 0.4
    prune_every: int = 25
    stat_window: int = 50
    error_fragment: str = ""
    strict: bool = False
    list_style: str = "dash"
    instrumentation: bool = False


@dataclass
class EditorConfig:
    ime: ImeConfig = field(default_factory=ImeConfig)
    serializer: SerializerConfig = field(default_factory=SerializerConfig)

    def validate(self) -> "EditorConfig":
        ime, ser = self.ime, self.serializer
        if ime.flush_timeout_ms <= 0:
            raise ConfigError("flush_timeout_ms must be positive")
        if ime.burst_window < 1:
            raise ConfigError("burst_window must be at least 1")
        if not 0.0 <= ser.fallback_threshold <= 1.0:
            raise ConfigError("fallback_threshold must be within [0, 1]")
        if ser.prune_every < 1:
            raise ConfigError("prune_every must be at least 1")
        if ser.stat_window < 1:
            raise ConfigError("stat_window must be at least 1")
        return self


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigError(f"{name}: expected a boolean, got {value!r}")
    if isinstance(default, frozenset):
        return frozenset(value)
    if isinstance(default, (int, float)) and not isinstance(value, (dict, list)):
        try:
            return type(default)(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name}: expected a number, got {value!r}") from None
    return value


def _section(cls, data: Optional[Mapping[str, Any]]):
    data = dict(data or {})
    instance = cls()
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"unknown {cls.__name__} keys: {sorted(unknown)}")
    for key, value in data.items():
        setattr(instance, key, _coerce(key, value, getattr(instance, key)))
    return instance


def config_from_dict(data: Mapping[str, Any]) -> EditorConfig:
    """Build a config from ``{"ime": {...}, "serializer": {...}}``."""
    unknown = set(data) - {"ime", "serializer"}
    if unknown:
        raise ConfigError(f"unknown config sections: {sorted(unknown)}")
    return EditorConfig(
        ime=_section(ImeConfig, data.get("ime")),
        serializer=_section(SerializerConfig, data.get("serializer")),
    ).validate()


_ENV_KEYS = {
    "LAYOUT": ("ime", "layout"),
    "ENABLED": ("ime", "enabled"),
    "EMIT_EVENTS": ("ime", "emit_events"),
    "FLUSH_TIMEOUT_MS": ("ime", "flush_timeout_ms"),
    "FALLBACK_THRESHOLD": ("serializer", "fallback_threshold"),
    "PRUNE_EVERY": ("serializer", "prune_every"),
    "STAT_WINDOW": ("serializer", "stat_window"),
    "STRICT": ("serializer", "strict"),
}


def load_config(
    path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> EditorConfig:
    """Load defaults, then a JSON file (if given), then env overrides."""
    data: Dict[str, Dict[str, Any]] = {"ime": {}, "serializer": {}}
    if path:
        try:
            with open(path, encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"config {path} must be a JSON object")
        for section, values in loaded.items():
            data.setdefault(section, {}).update(values or {})

    env = os.environ if env is None else env
    for suffix, (section, key) in _ENV_KEYS.items():
        value = env.get(ENV_PREFIX + suffix)
        if value is not None:
            data[section][key] = value
    return config_from_dict(data)
