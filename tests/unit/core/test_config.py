"""Unit tests for configuration system.

Tests for Pydantic configuration models including validation logic,
environment variable resolution and YAML loading.
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from pydantic import ValidationError

from eta_calculator.core.clock import ManualClock
from eta_calculator.core.config import (
    ENV_VAR_PATTERN,
    ApplicationConfig,
    ConfigurationError,
    EnvironmentVariableError,
    EstimatorConfig,
    MainConfig,
    load_main_config,
    resolve_env_var,
    resolve_env_vars_in_dict,
)
from eta_calculator.types.models import RegressionPolicy

WriteYaml = Callable[[str, str], Path]


@pytest.mark.unit
class TestEstimatorConfig:
    """Test EstimatorConfig validation and defaults."""

    def test_default_values(self) -> None:
        """Test default values are applied correctly."""
        config = EstimatorConfig()

        assert config.minimum_data == 5
        assert config.maximum_duration == 30.0
        assert config.tolerance == 0.001
        assert config.regression_policy == "clamp"

    def test_minimum_data_must_be_positive(self) -> None:
        """Test minimum_data must be at least 1."""
        with pytest.raises(ValidationError) as exc_info:
            _ = EstimatorConfig(minimum_data=0)

        assert "greater than or equal to 1" in str(exc_info.value)

    @pytest.mark.parametrize("duration", [0, -5.0])
    def test_maximum_duration_must_be_positive(self, duration: float) -> None:
        """Test maximum_duration must be greater than 0."""
        with pytest.raises(ValidationError) as exc_info:
            _ = EstimatorConfig(maximum_duration=duration)

        assert "greater than 0" in str(exc_info.value).lower()

    @pytest.mark.parametrize("tolerance", [-0.1, 1.0])
    def test_tolerance_range(self, tolerance: float) -> None:
        """Test tolerance must lie in [0, 1)."""
        with pytest.raises(ValidationError):
            _ = EstimatorConfig(tolerance=tolerance)

    def test_regression_policy_is_case_insensitive(self) -> None:
        """Test that policy names are normalized to lower case."""
        config = EstimatorConfig.model_validate({"regression_policy": " Propagate "})
        assert config.regression_policy == "propagate"

    def test_unknown_regression_policy(self) -> None:
        """Test that unknown policy names are rejected."""
        with pytest.raises(ValidationError):
            _ = EstimatorConfig.model_validate({"regression_policy": "ignore"})

    def test_build_calculator(self) -> None:
        """Test that the calculator receives every configured value."""
        config = EstimatorConfig(
            minimum_data=3,
            maximum_duration=12.5,
            tolerance=0.01,
            regression_policy="propagate",
        )

        calculator = config.build_calculator(clock=ManualClock())

        assert calculator.minimum_data == 3
        assert calculator.maximum_duration == 12.5
        assert calculator.tolerance == 0.01
        assert calculator.regression_policy is RegressionPolicy.PROPAGATE


@pytest.mark.unit
class TestApplicationConfig:
    """Test ApplicationConfig validation and defaults."""

    def test_default_values(self) -> None:
        """Test default values are applied correctly."""
        config = ApplicationConfig()

        assert config.log_level == "INFO"
        assert config.syslog_enabled is False
        assert config.refresh_interval == 1.0

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_valid_log_levels(self, level: str) -> None:
        """Test all standard log levels are accepted."""
        assert ApplicationConfig(log_level=level).log_level == level

    def test_invalid_log_level(self) -> None:
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            _ = ApplicationConfig(log_level="VERBOSE")

    def test_refresh_interval_must_be_positive(self) -> None:
        """Test refresh_interval must be greater than 0."""
        with pytest.raises(ValidationError):
            _ = ApplicationConfig(refresh_interval=0)


@pytest.mark.unit
class TestEnvironmentVariables:
    """Test environment variable resolution."""

    def test_pattern_matches_uppercase_names(self) -> None:
        """Test the ${VAR} pattern."""
        match = ENV_VAR_PATTERN.search("window: ${ETA_WINDOW_1}")
        assert match is not None
        assert match.group(1) == "ETA_WINDOW_1"
        assert ENV_VAR_PATTERN.search("${lowercase}") is None

    def test_resolve_single_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test resolution of a single reference."""
        monkeypatch.setenv("ETA_TEST_VALUE", "42")
        assert resolve_env_var("${ETA_TEST_VALUE}") == "42"

    def test_resolve_embedded_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test resolution of several references inside one string."""
        monkeypatch.setenv("ETA_A", "one")
        monkeypatch.setenv("ETA_B", "two")
        assert resolve_env_var("${ETA_A}-${ETA_B}") == "one-two"

    def test_missing_variable_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a missing variable raises EnvironmentVariableError."""
        monkeypatch.delenv("ETA_MISSING", raising=False)
        with pytest.raises(EnvironmentVariableError, match="ETA_MISSING"):
            _ = resolve_env_var("${ETA_MISSING}")

    def test_resolve_nested_structures(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test resolution inside nested dictionaries and lists."""
        monkeypatch.setenv("ETA_LEVEL", "DEBUG")
        data: dict[str, object] = {
            "application": {"log_level": "${ETA_LEVEL}", "syslog_enabled": False},
            "tags": ["${ETA_LEVEL}", 3, {"inner": "${ETA_LEVEL}"}],
            "count": 7,
        }

        result = resolve_env_vars_in_dict(data)

        assert result == {
            "application": {"log_level": "DEBUG", "syslog_enabled": False},
            "tags": ["DEBUG", 3, {"inner": "DEBUG"}],
            "count": 7,
        }


@pytest.mark.unit
class TestLoadMainConfig:
    """Test loading configuration files."""

    def test_load_full_config(self, write_yaml: WriteYaml) -> None:
        """Test loading a complete configuration file."""
        path = write_yaml(
            "config.yaml",
            """
estimator:
  minimum_data: 3
  maximum_duration: 15
  tolerance: 0.005
  regression_policy: propagate
application:
  log_level: DEBUG
  refresh_interval: 0.5
""",
        )

        config = load_main_config(path)

        assert config.estimator.minimum_data == 3
        assert config.estimator.maximum_duration == 15.0
        assert config.estimator.tolerance == 0.005
        assert config.estimator.regression_policy == "propagate"
        assert config.application.log_level == "DEBUG"
        assert config.application.refresh_interval == 0.5

    def test_partial_config_uses_defaults(self, write_yaml: WriteYaml) -> None:
        """Test that missing sections fall back to defaults."""
        path = write_yaml("config.yaml", "estimator:\n  minimum_data: 2\n")

        config = load_main_config(path)

        assert config.estimator.minimum_data == 2
        assert config.estimator.maximum_duration == 30.0
        assert config.application == ApplicationConfig()

    def test_empty_file_uses_defaults(self, write_yaml: WriteYaml) -> None:
        """Test that an empty file yields the default configuration."""
        path = write_yaml("config.yaml", "")
        assert load_main_config(path) == MainConfig()

    def test_environment_variables_are_resolved(
        self, write_yaml: WriteYaml, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that ${VAR} references are resolved before validation."""
        monkeypatch.setenv("ETA_WINDOW", "45")
        path = write_yaml("config.yaml", "estimator:\n  maximum_duration: ${ETA_WINDOW}\n")

        config = load_main_config(path)

        assert config.estimator.maximum_duration == 45.0

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            _ = load_main_config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, write_yaml: WriteYaml) -> None:
        """Test that malformed YAML raises ConfigurationError."""
        path = write_yaml("config.yaml", "estimator: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            _ = load_main_config(path)

    def test_non_mapping_root(self, write_yaml: WriteYaml) -> None:
        """Test that a non-dictionary root raises ConfigurationError."""
        path = write_yaml("config.yaml", "- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="Expected YAML dictionary"):
            _ = load_main_config(path)

    def test_missing_environment_variable(self, write_yaml: WriteYaml, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that unresolved variables raise ConfigurationError."""
        monkeypatch.delenv("ETA_UNSET", raising=False)
        path = write_yaml("config.yaml", "application:\n  log_level: ${ETA_UNSET}\n")

        with pytest.raises(ConfigurationError, match="Environment variable resolution failed"):
            _ = load_main_config(path)

    def test_validation_error_lists_fields(self, write_yaml: WriteYaml) -> None:
        """Test that validation failures name the offending field."""
        path = write_yaml("config.yaml", "estimator:\n  minimum_data: 0\n")

        with pytest.raises(ConfigurationError) as exc_info:
            _ = load_main_config(path)

        message = str(exc_info.value)
        assert "Configuration validation failed" in message
        assert "estimator → minimum_data" in message
        assert str(path) in message

    def test_shipped_example_config_is_valid(self) -> None:
        """Test that the example configuration in the repository loads."""
        path = Path(__file__).resolve().parents[3] / "config" / "eta-calculator.yaml"

        config = load_main_config(path)

        assert config.estimator.minimum_data >= 1
