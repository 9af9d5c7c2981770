"""Tests for YAML configuration, environment overrides and filter building."""

import logging
from pathlib import Path

import numpy as np
import pytest
import yaml

from pixelbiquad import PixelFrame
from pixelbiquad import config as config_mod
from pixelbiquad.config import (
    AppConfig,
    FilterConfig,
    LoggingConfig,
    apply_config,
    build_filter,
    coerce_env_value,
    configure_logging,
    load_config,
    save_config,
)
from pixelbiquad.diagnostics import DiagnosticKind
from pixelbiquad.dsp.range_policy import RangeMode
from pixelbiquad.utils.log_sampling import LogSamplingFilter


@pytest.fixture
def no_env(monkeypatch):
    monkeypatch.setattr(config_mod, "os_environ_items", lambda: [])


def _write(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path, no_env):
        cfg = load_config(str(tmp_path / "missing.yaml"))
        assert cfg.filter.coefficients == [1.0, 0.0, 0.0, 0.0, 0.0]
        assert cfg.filter.gain == 1.0
        assert cfg.filter.wrap_range == 1.0
        assert cfg.logging.level == "warning"

    def test_reads_filter_section(self, tmp_path: Path, no_env):
        path = _write(
            tmp_path / "filter.yaml",
            {
                "filter": {
                    "coefficients": [0.5, 0.5, 0, 0.2, -0.1, 99],
                    "gain": 1.5,
                    "wrap_positive": True,
                    "abs_value": True,
                    "wrap_range": 0.5,
                    "seed": 3,
                },
                "logging": {"level": "debug"},
            },
        )
        cfg = load_config(str(path))
        assert cfg.filter.coefficients == [0.5, 0.5, 0.0, 0.2, -0.1]
        assert cfg.filter.gain == 1.5
        assert cfg.filter.wrap_positive is True
        assert cfg.filter.abs_value is True
        assert cfg.filter.seed == 3
        assert cfg.logging.level == "debug"

    def test_non_mapping_root_rejected(self, tmp_path: Path, no_env):
        path = tmp_path / "bad.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_short_coefficients_rejected(self, tmp_path: Path, no_env):
        path = _write(tmp_path / "short.yaml", {"filter": {"coefficients": [1, 2, 3]}})
        with pytest.raises(ValueError, match="coefficients"):
            load_config(str(path))

    def test_unknown_key_rejected(self, tmp_path: Path, no_env):
        path = _write(tmp_path / "typo.yaml", {"filter": {"gian": 2}})
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_environment_overrides(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(
            config_mod,
            "os_environ_items",
            lambda: [
                ("PIXELBIQUAD__FILTER__GAIN", "0.25"),
                ("PIXELBIQUAD__FILTER__WRAP_NEGATIVE", "true"),
                ("PIXELBIQUAD__FILTER__COEFFICIENTS", "0.5, 0.5, 0, 0, 0"),
                ("PIXELBIQUAD__LOGGING__LEVEL", "10"),
                ("PIXELBIQUAD__OTHER__KEY", "ignored"),
                ("UNRELATED", "1"),
            ],
        )
        path = _write(tmp_path / "filter.yaml", {"filter": {"gain": 4.0}})
        cfg = load_config(str(path))
        assert cfg.filter.gain == 0.25
        assert cfg.filter.wrap_negative is True
        assert cfg.filter.coefficients == [0.5, 0.5, 0.0, 0.0, 0.0]
        assert cfg.logging.level == 10


def test_coerce_env_value() -> None:
    assert coerce_env_value("TRUE") is True
    assert coerce_env_value("7") == 7
    assert coerce_env_value("0.5") == 0.5
    assert coerce_env_value("abc") == "abc"


def test_save_then_load(tmp_path: Path, no_env) -> None:
    path = _write(tmp_path / "cfg.yaml", {"filter": {"gain": 3.0}, "notes": "keep me"})
    cfg = AppConfig(
        filter=FilterConfig(coefficients=[0.1, 0.2, 0.3, 0.4, 0.5], gain=0.9, wrap_negative=True),
        logging=LoggingConfig(level="info"),
    )
    save_config(cfg, str(path))

    loaded = load_config(str(path))
    assert loaded.filter == cfg.filter
    assert loaded.logging == cfg.logging
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["notes"] == "keep me"
    assert (tmp_path / "cfg.yaml.bak").exists()


class TestBuildFilter:
    def test_build_applies_settings(self):
        cfg = FilterConfig(
            coefficients=[0.5, 0.5, 0.0, 0.0, 0.0],
            gain=2.0,
            wrap_positive=True,
            wrap_negative=True,
            wrap_range=0.5,
            seed=1,
        )
        filt = build_filter(cfg)
        assert filt.coefficients.as_tuple() == (0.5, 0.5, 0.0, 0.0, 0.0)
        assert filt.gain == 2.0
        assert filt.range_policy.mode is RangeMode.WRAP_BOTH
        assert filt.range_policy.wrap_range == 128

    def test_built_filter_runs(self):
        filt = build_filter(AppConfig())
        data = np.array([[10, 20, 30]], dtype=np.uint8)
        out = filt.process(PixelFrame(data))
        np.testing.assert_array_equal(out.data[:, :, 0], data)

    def test_apply_to_existing_filter_keeps_state(self, echo_filter, make_frame):
        echo_filter.process(make_frame(2, 2, 1))
        apply_config(echo_filter, FilterConfig(gain=0.5))
        assert echo_filter.is_allocated()
        assert echo_filter.gain == 0.5
        assert echo_filter.coefficients.fb1 == 0.0


class _Collect(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


@pytest.fixture
def package_logging():
    """Restore the package logger level, handlers and sampling filters."""
    package_logger = logging.getLogger("pixelbiquad")
    previous_level = package_logger.level
    handlers: list[logging.Handler] = []
    yield package_logger, handlers
    for handler in handlers:
        package_logger.removeHandler(handler)
    for name in config_mod.SAMPLED_LOGGERS:
        source = logging.getLogger(name)
        for f in list(source.filters):
            if isinstance(f, LogSamplingFilter):
                source.removeFilter(f)
    package_logger.setLevel(previous_level)


class TestConfigureLogging:
    def test_sets_level_and_attaches_sampling(self, package_logging):
        package_logger, _ = package_logging
        sampling = configure_logging(LoggingConfig(level="error", diagnostic_sample_per_interval=1))
        assert package_logger.level == logging.ERROR
        for name in config_mod.SAMPLED_LOGGERS:
            assert sampling in logging.getLogger(name).filters

    def test_every_handler_gets_the_full_quota(self, package_logging):
        package_logger, handlers = package_logging
        first, second = _Collect(), _Collect()
        handlers.extend([first, second])
        for handler in handlers:
            package_logger.addHandler(handler)

        configure_logging(
            LoggingConfig(
                level="warning",
                diagnostic_sample_per_interval=4,
                diagnostic_sample_interval_s=3600.0,
            )
        )
        filt = build_filter(FilterConfig(seed=0))
        for _ in range(10):
            assert not filt.feed(None)

        unallocated = [m for m in first.messages if "not allocated" in m]
        assert len(unallocated) == 4
        assert second.messages == first.messages
        assert filt.diagnostics.count(DiagnosticKind.UNALLOCATED_INPUT) == 10

    def test_repeated_calls_do_not_stack_filters(self, package_logging):
        configure_logging(LoggingConfig())
        latest = configure_logging(LoggingConfig())
        for name in config_mod.SAMPLED_LOGGERS:
            filters = logging.getLogger(name).filters
            sampling = [f for f in filters if isinstance(f, LogSamplingFilter)]
            assert sampling == [latest]
