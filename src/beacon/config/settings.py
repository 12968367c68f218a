"""Application configuration helpers for the Beacon ingestion service."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from datetime import date
from pathlib import Path
import types
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union, get_args, get_origin, get_type_hints


_DEFAULT_CONFIG_LOCATIONS = (
    Path("beacon.json"),
    Path.home() / ".config" / "beacon" / "config.json",
)

_FIRST_CONGRESS_YEAR = 1789
_FIRST_CONGRESS_NUMBER = 1
_CONGRESS_START_DAY = 3


@dataclass(slots=True)
class CongressConfig:
    """Configuration for the Congress.gov API."""

    base_url: str = "https://api.congress.gov/v3"
    api_key: Optional[str] = None
    timeout: float = 30.0
    max_retries: int = 3
    page_size: int = 250
    congress_number: int = 0
    additional_congresses: List[int] = field(default_factory=list)

    def roster_congresses(self, today: Optional[date] = None) -> List[int]:
        """Unique congress numbers to ingest, oldest first.

        The newest congress runs last so officials listed on several rosters end
        up attached to it. When nothing usable is configured the current
        congress is estimated from ``today``.
        """

        congresses: List[int] = []
        candidates = [self.congress_number, *self.additional_congresses]
        for number in candidates:
            if number is None or number <= 0 or number in congresses:
                continue
            congresses.append(number)
        if not congresses:
            congresses.append(estimate_current_congress(today))
        return sorted(congresses)


@dataclass(slots=True)
class IngestionConfig:
    """Cadence and limits of the ingestion cycle."""

    poll_interval_seconds: float = 3600.0
    roster_refresh_interval_seconds: float = 21600.0
    lock_namespace: str = "roster-sync"
    attendance_history_limit: int = 12
    summary_batch_limit: int = 25
    enable_vote_ingestion: bool = True
    enable_summaries: bool = True


@dataclass(slots=True)
class LockConfig:
    """Backing store of the distributed roster lock."""

    redis_url: Optional[str] = None
    socket_timeout: float = 5.0


@dataclass(slots=True)
class KafkaConfig:
    """Configuration of the accountability event topic."""

    enabled: bool = True
    bootstrap_servers: str = "localhost:9092"
    topic: str = "official-accountability-events"
    partitions: int = 6
    client_id: str = "beacon-ingest-usa-fed"
    max_block_ms: int = 5000


@dataclass(slots=True)
class GeminiConfig:
    """Configuration for the Gemini API used for bill summaries."""

    api_key: Optional[str] = None
    base_url: str = "https://generativelanguage.googleapis.com"
    model: str = "gemini-2.5-flash"
    timeout: float = 120.0
    max_retries: int = 3
    enable_safety_settings: bool = False


@dataclass(slots=True)
class StorageConfig:
    """Configuration for the relational store."""

    database_url: str = "sqlite:///beacon.db"
    echo_sql: bool = False


@dataclass(slots=True)
class AppConfig:
    """High level application configuration."""

    congress: CongressConfig
    ingestion: IngestionConfig
    lock: LockConfig
    kafka: KafkaConfig
    gemini: GeminiConfig
    storage: StorageConfig


_SECTIONS: Dict[str, type] = {
    "congress": CongressConfig,
    "ingestion": IngestionConfig,
    "lock": LockConfig,
    "kafka": KafkaConfig,
    "gemini": GeminiConfig,
    "storage": StorageConfig,
}


def estimate_current_congress(today: Optional[date] = None) -> int:
    """Estimate the sitting congress; a new one convenes on January 3rd of odd years."""

    today = today or date.today()
    if today.year <= _FIRST_CONGRESS_YEAR:
        return _FIRST_CONGRESS_NUMBER
    congress = (today.year - _FIRST_CONGRESS_YEAR) // 2 + _FIRST_CONGRESS_NUMBER
    if today.year % 2 == 1 and today.month == 1 and today.day < _CONGRESS_START_DAY:
        congress -= 1
    return max(_FIRST_CONGRESS_NUMBER, congress)


_ENV_PREFIX = "BEACON_"
_TRUE_WORDS = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "n", "off"})

T = TypeVar("T")


def _environment_overrides(section: str) -> Dict[str, str]:
    """``BEACON_<SECTION>_<FIELD>`` variables of one section keyed by field name."""

    prefix = f"{_ENV_PREFIX}{section.upper()}_"
    return {key[len(prefix):].lower(): value for key, value in os.environ.items() if key.startswith(prefix)}


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf8")
    except FileNotFoundError:
        return {}
    return json.loads(text) if text.strip() else {}


def _first_config_file() -> Dict[str, Any]:
    for candidate in _DEFAULT_CONFIG_LOCATIONS:
        data = _read_json(candidate)
        if data:
            return data
    return {}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValueError(f"{value!r} is not a boolean")


def _parse_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not an integer")
    if isinstance(value, int):
        return value
    return int(float(value))


_SCALAR_PARSERS: Dict[Any, Callable[[Any], Any]] = {
    bool: _parse_bool,
    int: _parse_int,
    float: float,
    str: str,
}


def _convert(value: Any, annotation: Any) -> Any:
    """Convert a file or environment value to the annotated field type."""

    if value is None:
        return None
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        # sections only use Optional[X]
        (inner,) = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _convert(value, inner)
    if origin is list:
        (item_type,) = get_args(annotation)
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",") if item.strip()]
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"{value!r} is not a list")
        return [_convert(item, item_type) for item in value]
    parser = _SCALAR_PARSERS.get(annotation)
    return parser(value) if parser is not None else value


def _build_section(cls: Type[T], values: Dict[str, Any]) -> T:
    hints = get_type_hints(cls)
    kwargs: Dict[str, Any] = {}
    for entry in fields(cls):
        if entry.name not in values:
            continue
        raw = values[entry.name]
        try:
            kwargs[entry.name] = _convert(raw, hints[entry.name])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value for {cls.__name__}.{entry.name}: {raw!r}") from exc
    return cls(**kwargs)


def resolve_config_path(explicit_path: Optional[Path] = None) -> Path:
    """Return ``explicit_path``, else the first existing default location.

    Without any existing file the per-user location
    (``~/.config/beacon/config.json``) is returned so it can be created.
    """

    if explicit_path:
        return explicit_path
    return next(
        (candidate for candidate in _DEFAULT_CONFIG_LOCATIONS if candidate.exists()),
        _DEFAULT_CONFIG_LOCATIONS[-1],
    )


def load_config(explicit_path: Optional[Path] = None) -> AppConfig:
    """Build the configuration from defaults, a JSON file and the environment.

    Later sources win field by field. Environment variables are named
    ``BEACON_<SECTION>_<FIELD>``, e.g. ``BEACON_CONGRESS_API_KEY`` or
    ``BEACON_LOCK_REDIS_URL``; list fields take comma separated values.
    """

    file_data = _read_json(explicit_path) if explicit_path else _first_config_file()
    sections: Dict[str, Any] = {}
    for name, cls in _SECTIONS.items():
        values = {key: value for key, value in (file_data.get(name) or {}).items() if value is not None}
        values.update(_environment_overrides(name))
        sections[name] = _build_section(cls, values)
    return AppConfig(**sections)


def save_config(config: AppConfig, path: Optional[Path] = None) -> Path:
    target = resolve_config_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data = {name: asdict(getattr(config, name)) for name in _SECTIONS}
    target.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True) + "\n", encoding="utf8")
    return target


__all__ = [
    "AppConfig",
    "CongressConfig",
    "GeminiConfig",
    "IngestionConfig",
    "KafkaConfig",
    "LockConfig",
    "StorageConfig",
    "estimate_current_congress",
    "load_config",
    "resolve_config_path",
    "save_config",
]
