"""
Property-based tests for configuration module.

Uses Hypothesis for property-based testing to verify that configurations are
validated before any ingestion, that textual values are coerced to their
enums and that JSON config files load into the same structures.
"""

import json
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from dmarc_summary.cli import create_default_config, load_config_from_file
from dmarc_summary.config import (
    LoggingConfig,
    OutputConfig,
    PipelineConfig,
    SystemConfig,
    default_worker_count,
)
from dmarc_summary.enums import ErrorPolicy, LogLevel, OutputFormat, SortKey
from dmarc_summary.exceptions import ConfigError


@st.composite
def system_config_strategy(draw) -> SystemConfig:
    """Generate valid SystemConfig objects."""
    return SystemConfig(
        pipeline=PipelineConfig(
            sort_key=draw(st.sampled_from(list(SortKey))),
            workers=draw(st.integers(min_value=1, max_value=64)),
            queue_capacity=draw(st.integers(min_value=1, max_value=1000)),
            error_policy=draw(st.sampled_from(list(ErrorPolicy))),
        ),
        output=OutputConfig(
            format=draw(st.sampled_from(list(OutputFormat))),
            delimiter=draw(st.sampled_from([",", ";", "\t", "|"])),
        ),
        logging=LoggingConfig(
            level=draw(st.sampled_from(list(LogLevel))),
            output_format=draw(st.sampled_from(["json", "text", "both"])),
        ),
        language=draw(st.sampled_from(["en", "de"])),
    )


def config_to_dict(config: SystemConfig) -> dict:
    return {
        "pipeline": {
            "sort": config.pipeline.sort_key.value,
            "workers": config.pipeline.workers,
            "queue_capacity": config.pipeline.queue_capacity,
            "error_policy": config.pipeline.error_policy.value,
        },
        "output": {
            "format": config.output.format.value,
            "delimiter": config.output.delimiter,
        },
        "logging": {
            "level": config.logging.level.value,
            "output_format": config.logging.output_format,
        },
        "language": config.language,
    }


class TestDefaultsProperty:
    """Tests for the built-in defaults."""

    def test_defaults_are_valid(self) -> None:
        config = create_default_config()

        config.validate()

        assert config.pipeline.sort_key is SortKey.DATE
        assert config.pipeline.queue_capacity == 100
        assert config.pipeline.error_policy is ErrorPolicy.ABORT
        assert config.output.format is OutputFormat.TABLE
        assert config.output.delimiter == ","
        assert config.logging.level is LogLevel.WARN
        assert config.pipeline.workers == default_worker_count()
        assert 1 <= default_worker_count() <= 32


class TestValidationProperty:
    """Property-based tests for configuration validation."""

    @given(config=system_config_strategy())
    @settings(max_examples=100)
    def test_valid_configs_pass(self, config: SystemConfig) -> None:
        config.validate()

    @given(
        sort=st.sampled_from(list(SortKey)),
        policy=st.sampled_from(list(ErrorPolicy)),
        fmt=st.sampled_from(list(OutputFormat)),
        level=st.sampled_from(list(LogLevel)),
    )
    @settings(max_examples=50)
    def test_textual_values_are_coerced(self, sort, policy, fmt, level) -> None:
        """
        *For any* enum-valued setting given as text, validation SHALL
        replace it with the matching enum member.
        """
        config = SystemConfig(
            pipeline=PipelineConfig(sort_key=sort.value, workers=2, error_policy=policy.value),
            output=OutputConfig(format=fmt.value),
            logging=LoggingConfig(level=level.value),
        )

        config.validate()

        assert config.pipeline.sort_key is sort
        assert config.pipeline.error_policy is policy
        assert config.output.format is fmt
        assert config.logging.level is level

    @given(workers=st.integers(max_value=0))
    @settings(max_examples=50)
    def test_non_positive_worker_count_rejected(self, workers: int) -> None:
        with pytest.raises(ConfigError) as excinfo:
            PipelineConfig(workers=workers).validate()

        assert excinfo.value.code == "invalid_workers"

    @given(capacity=st.integers(max_value=0))
    @settings(max_examples=50)
    def test_non_positive_queue_capacity_rejected(self, capacity: int) -> None:
        with pytest.raises(ConfigError) as excinfo:
            PipelineConfig(workers=1, queue_capacity=capacity).validate()

        assert excinfo.value.code == "invalid_queue_capacity"

    @pytest.mark.parametrize(
        "config, code",
        [
            (SystemConfig(pipeline=PipelineConfig(sort_key="size")), "unknown_sort_key"),
            (SystemConfig(pipeline=PipelineConfig(error_policy="retry")), "invalid_error_policy"),
            (SystemConfig(output=OutputConfig(format="xml")), "invalid_output_format"),
            (SystemConfig(output=OutputConfig(delimiter=",,")), "invalid_delimiter"),
            (SystemConfig(output=OutputConfig(delimiter="")), "invalid_delimiter"),
            (SystemConfig(logging=LoggingConfig(level="trace")), "invalid_log_level"),
            (SystemConfig(logging=LoggingConfig(output_format="yaml")), "invalid_log_format"),
            (SystemConfig(language="fr"), "invalid_language"),
        ],
    )
    def test_invalid_values_rejected(self, config: SystemConfig, code: str) -> None:
        with pytest.raises(ConfigError) as excinfo:
            config.validate()

        assert excinfo.value.code == code


class TestConfigFileProperty:
    """Property-based tests for JSON config files."""

    @given(config=system_config_strategy(), run=st.integers(min_value=0, max_value=10**9))
    @settings(max_examples=50)
    def test_file_reproduces_config(self, tmp_path_factory, config: SystemConfig, run: int) -> None:
        """
        *For any* valid configuration written as JSON, loading the file
        SHALL yield an equal configuration after validation.
        """
        path = tmp_path_factory.mktemp("config") / f"config-{run}.json"
        path.write_text(json.dumps(config_to_dict(config)), encoding="utf-8")

        loaded = load_config_from_file(path)
        loaded.validate()

        assert loaded == config

    def test_missing_sections_use_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"pipeline": {"sort": "domain"}}), encoding="utf-8")

        loaded = load_config_from_file(path)
        loaded.validate()

        assert loaded.pipeline.sort_key is SortKey.DOMAIN
        assert loaded.output.format is OutputFormat.TABLE
        assert loaded.language == "en"

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert load_config_from_file(tmp_path / "absent.json") is None

    def test_malformed_file_returns_none(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")

        assert load_config_from_file(path) is None
        assert "Error loading config" in capsys.readouterr().err

    def test_non_object_file_returns_none(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")

        assert load_config_from_file(path) is None
