"""Configuration for the span layer.

Configuration is fixed when the layer is built. Values come from, in
increasing priority: defaults, a TOML file's ``[tracing]`` table, and
``TRACEHOOK_*`` environment variables.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from tracehook.context.propagators import DEFAULT_HEADER
from tracehook.errors import ConfigError
from tracehook.processors.event_router import ExportMode
from tracehook.processors.sampler import (
    DEFAULT_SAMPLER,
    AlwaysOffSampler,
    AlwaysOnSampler,
    RateLimitingSampler,
    Sampler,
    TraceIdRatioSampler,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("tracehook.toml", ".tracehook.toml")

ENV_VARS = {
    "export_mode": "TRACEHOOK_EXPORT_MODE",
    "sampler": "TRACEHOOK_SAMPLER",
    "sample_rate": "TRACEHOOK_SAMPLE_RATE",
    "max_traces_per_second": "TRACEHOOK_MAX_TRACES_PER_SECOND",
    "propagation_header": "TRACEHOOK_PROPAGATION_HEADER",
    "store_shards": "TRACEHOOK_STORE_SHARDS",
}


@dataclass(frozen=True)
class TracingConfig:
    export_mode: ExportMode = ExportMode.SPAN_EVENT
    sampler: Sampler = field(default=DEFAULT_SAMPLER)
    propagation_header: str = DEFAULT_HEADER
    store_shards: int = 16

    def __post_init__(self) -> None:
        if not isinstance(self.export_mode, ExportMode):
            raise ConfigError("export_mode must be an ExportMode", {"export_mode": self.export_mode})
        if not isinstance(self.sampler, Sampler):
            raise ConfigError("sampler must implement Sampler", {"sampler": self.sampler})
        if not self.propagation_header:
            raise ConfigError("propagation_header must not be empty")
        if self.store_shards < 1:
            raise ConfigError("store_shards must be >= 1", {"store_shards": self.store_shards})


def load_toml_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a TOML config file.

    Returns an empty dict if the file does not exist; raises ConfigError if
    it cannot be parsed.
    """
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}", {"error": str(exc)}) from exc


def find_config_file(start: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Look for a config file in ``start`` (default: cwd) and then the home directory."""
    for directory in (Path(start) if start else Path.cwd(), Path.home()):
        for name in DEFAULT_CONFIG_FILES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def _parse_export_mode(value: Any) -> ExportMode:
    try:
        return ExportMode(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(m.value for m in ExportMode)
        raise ConfigError(f"Unknown export_mode {value!r} (expected one of: {valid})") from None


def _parse_number(key: str, value: Any, kind=float):
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number", {key: value}) from None


def build_sampler(settings: Mapping[str, Any]) -> Sampler:
    """Build a sampler from ``sampler`` plus its parameters."""
    name = str(settings.get("sampler", "")).strip().lower()
    sample_rate = settings.get("sample_rate")
    if not name:
        # A bare sample_rate implies ratio sampling.
        name = "ratio" if sample_rate is not None else "always_on"

    try:
        if name == "always_on":
            return AlwaysOnSampler()
        if name == "always_off":
            return AlwaysOffSampler()
        if name == "ratio":
            rate = 1.0 if sample_rate is None else _parse_number("sample_rate", sample_rate)
            return TraceIdRatioSampler(rate)
        if name == "rate_limited":
            limit = settings.get("max_traces_per_second")
            if limit is None:
                raise ConfigError("rate_limited sampler requires max_traces_per_second")
            return RateLimitingSampler(_parse_number("max_traces_per_second", limit))
    except ValueError as exc:
        raise ConfigError(str(exc), {"sampler": name}) from exc
    raise ConfigError(f"Unknown sampler {name!r}")


def _env_settings(env: Mapping[str, str]) -> Dict[str, Any]:
    settings: Dict[str, Any] = {}
    for key, var in ENV_VARS.items():
        value = env.get(var)
        if value not in (None, ""):
            settings[key] = value
    return settings


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> TracingConfig:
    """Merge defaults, a TOML file and environment variables into a config."""
    env = os.environ if env is None else env
    if path is None:
        path = find_config_file()

    settings: Dict[str, Any] = {}
    if path is not None:
        file_config = load_toml_config(path)
        tracing = file_config.get("tracing", {})
        if not isinstance(tracing, dict):
            raise ConfigError("[tracing] must be a table", {"path": str(path)})
        settings.update(tracing)
        logger.debug("Loaded tracing config from %s", path)
    settings.update(_env_settings(env))

    kwargs: Dict[str, Any] = {"sampler": build_sampler(settings)}
    if "export_mode" in settings:
        kwargs["export_mode"] = _parse_export_mode(settings["export_mode"])
    if "propagation_header" in settings:
        kwargs["propagation_header"] = str(settings["propagation_header"])
    if "store_shards" in settings:
        kwargs["store_shards"] = _parse_number("store_shards", settings["store_shards"], int)
    return TracingConfig(**kwargs)
