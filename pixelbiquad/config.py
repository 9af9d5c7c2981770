from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from pixelbiquad.dsp.biquad import PixelBiquad
from pixelbiquad.dsp.range_policy import DEFAULT_WRAP_RANGE
from pixelbiquad.utils.log_levels import parse_log_level
from pixelbiquad.utils.log_sampling import LogSamplingFilter, LogSamplingRule
from pixelbiquad.validation import COEFFICIENT_COUNT, validate_coefficient_set, validate_wrap_range

logger = logging.getLogger(__name__)

ENV_PREFIX = "PIXELBIQUAD__"
_SECTIONS = ("filter", "logging")

# Loggers that report per-frame diagnostics. Logger filters run once per
# record before any handler sees it, unlike filters on an ancestor logger.
SAMPLED_LOGGERS = (
    "pixelbiquad.dsp.biquad",
    "pixelbiquad.dsp.state",
    "pixelbiquad.dsp.coefficients",
)


@dataclass
class FilterConfig:
    # ff0, ff1, ff2, fb1, fb2
    coefficients: list[float] = field(default_factory=lambda: [1.0, 0.0, 0.0, 0.0, 0.0])
    gain: float = 1.0
    wrap_positive: bool = False
    wrap_negative: bool = False
    abs_value: bool = False
    # Multiple of 256; 1.0 wraps at 256
    wrap_range: float = DEFAULT_WRAP_RANGE / 256.0
    # Seed for the denormal offset generator
    seed: int | None = None


@dataclass
class LoggingConfig:
    level: str | int = "warning"
    # Per-frame diagnostics let through per logger and level in each interval
    diagnostic_sample_per_interval: int = 5
    diagnostic_sample_interval_s: float = 10.0


@dataclass
class AppConfig:
    filter: FilterConfig = field(default_factory=FilterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("Config root must be a mapping")
        return data


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return value


def load_config(path_str: str) -> AppConfig:
    path = Path(path_str)
    raw: dict[str, Any] = _read_yaml(path)

    # Environment overrides (prefix PIXELBIQUAD__SECTION__KEY)
    # Example: PIXELBIQUAD__FILTER__GAIN=0.8
    for k, v in os_environ_items():
        if not k.startswith(ENV_PREFIX):
            continue
        parts = k[len(ENV_PREFIX) :].split("__")
        if len(parts) != 2:
            continue
        section, key = (p.lower() for p in parts)
        if section not in _SECTIONS:
            continue
        if raw.get(section) is None:
            raw[section] = {}
        if isinstance(raw[section], dict):
            raw[section][key] = coerce_env_value(v)

    filter_raw = dict(_section(raw, "filter"))
    coefficients = filter_raw.get("coefficients")
    if coefficients is not None:
        if isinstance(coefficients, str):
            coefficients = [c for c in coefficients.replace(",", " ").split() if c]
        ok, reason = validate_coefficient_set(coefficients)
        if not ok:
            raise ValueError(f"filter.coefficients: {reason}")
        filter_raw["coefficients"] = [float(c) for c in list(coefficients)[:COEFFICIENT_COUNT]]
    if "wrap_range" in filter_raw:
        ok, reason = validate_wrap_range(filter_raw["wrap_range"])
        if not ok:
            raise ValueError(f"filter.wrap_range: {reason}")
        filter_raw["wrap_range"] = float(filter_raw["wrap_range"])

    try:
        filter_cfg = FilterConfig(**filter_raw)
        logging_cfg = LoggingConfig(**_section(raw, "logging"))
    except TypeError as exc:
        raise ValueError(f"Invalid config {path}: {exc}") from exc

    return AppConfig(filter=filter_cfg, logging=logging_cfg)


def coerce_env_value(val: str) -> Any:
    # Basic bool/int/float coercion for convenience
    lower = val.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    try:
        return int(val)
    except ValueError:
        pass
    try:
        return float(val)
    except ValueError:
        return val


def os_environ_items() -> list[tuple[str, str]]:
    # Wrapped for testability
    from os import environ

    return [(k, v) for k, v in environ.items()]


def save_config(config: AppConfig, path_str: str) -> None:
    """Write the config back to YAML, keeping unrelated top-level keys."""
    path = Path(path_str)

    existing_data: dict[str, Any] = _read_yaml(path) if path.exists() else {}
    if path.exists():
        backup_path = path.with_suffix(path.suffix + ".bak")
        try:
            shutil.copy2(path, backup_path)
        except OSError as exc:
            logger.warning("Failed to write config backup to %s: %s", backup_path, exc)

    filter_data: dict[str, Any] = {
        "coefficients": [float(c) for c in config.filter.coefficients],
        "gain": config.filter.gain,
        "wrap_positive": config.filter.wrap_positive,
        "wrap_negative": config.filter.wrap_negative,
        "abs_value": config.filter.abs_value,
        "wrap_range": config.filter.wrap_range,
    }
    if config.filter.seed is not None:
        filter_data["seed"] = config.filter.seed
    existing_data["filter"] = filter_data

    existing_data["logging"] = {
        "level": config.logging.level,
        "diagnostic_sample_per_interval": config.logging.diagnostic_sample_per_interval,
        "diagnostic_sample_interval_s": config.logging.diagnostic_sample_interval_s,
    }

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(existing_data, f, default_flow_style=False, sort_keys=False)


def apply_config(filt: PixelBiquad, config: FilterConfig) -> PixelBiquad:
    """Apply coefficients, gain and range settings to an existing filter."""
    filt.set_coeffs_from(config.coefficients)
    filt.set_gain(config.gain)
    filt.set_wrap_positive(config.wrap_positive)
    filt.set_wrap_negative(config.wrap_negative)
    filt.set_abs_value(config.abs_value)
    filt.set_wrap_range(config.wrap_range)
    return filt


def build_filter(config: AppConfig | FilterConfig) -> PixelBiquad:
    filter_cfg = config.filter if isinstance(config, AppConfig) else config
    return apply_config(PixelBiquad(seed=filter_cfg.seed), filter_cfg)


def configure_logging(config: LoggingConfig) -> LogSamplingFilter:
    """Set the package log level and rate-limit per-frame diagnostics.

    One sampling filter is shared by the diagnostic loggers, so every handler
    sees the same sampled records. Calling this again replaces the filter.
    """
    level = parse_log_level(config.level, logging.WARNING)
    package_logger = logging.getLogger("pixelbiquad")
    package_logger.setLevel(level)

    sampling = LogSamplingFilter(
        [
            LogSamplingRule(
                prefix="pixelbiquad.dsp",
                max_per_interval=config.diagnostic_sample_per_interval,
                interval_s=config.diagnostic_sample_interval_s,
            )
        ],
        max_level=logging.WARNING,
    )
    for name in SAMPLED_LOGGERS:
        source = logging.getLogger(name)
        for stale in [f for f in source.filters if isinstance(f, LogSamplingFilter)]:
            source.removeFilter(stale)
        source.addFilter(sampling)
    return sampling
