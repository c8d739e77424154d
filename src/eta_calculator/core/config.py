"""Configuration for eta-calculator.

The YAML file has two sections, `estimator` (calculator settings) and
`application` (logging and CLI output). String values may reference
environment variables as `${NAME}`; references are resolved before the data
is validated by the Pydantic models below, and any failure is reported as a
`ConfigurationError` naming the file and the offending fields.
"""

import os
import re
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Annotated, Final, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from eta_calculator.core.calculation import DEFAULT_TOLERANCE
from eta_calculator.core.eta_calculator import EtaCalculator
from eta_calculator.types.models import RegressionPolicy
from eta_calculator.types.protocols import TickClock

# ${NAME} where NAME is upper-case letters, digits and underscores
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")


class EstimatorConfig(BaseModel):
    """Configuration for the rolling-window ETA calculator.

    Defines how many samples are required before an estimate is trusted,
    how far back the rolling window reaches, and how small progress changes
    and regressions are treated.
    """

    minimum_data: Annotated[
        int,
        Field(
            ge=1,
            description="Minimum number of samples before the ETA is trusted",
        ),
    ] = 5
    maximum_duration: Annotated[
        float,
        Field(
            gt=0,
            description="Width of the rolling window in seconds",
        ),
    ] = 30.0
    tolerance: Annotated[
        float,
        Field(
            ge=0.0,
            lt=1.0,
            description="Progress delta below which two observations are treated as identical",
        ),
    ] = DEFAULT_TOLERANCE
    regression_policy: Annotated[
        Literal["clamp", "propagate"],
        Field(
            description="Handling of negative remaining time when progress moves backward",
        ),
    ] = "clamp"

    @field_validator("regression_policy", mode="before")
    @classmethod
    def normalize_regression_policy(cls, v: object) -> object:
        """Accept regression policy names in any letter case.

        Args:
            v: Raw regression policy value

        Returns:
            Lowercased policy name, or the value untouched if not a string
        """
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def build_calculator(
        self,
        *,
        clock: TickClock | None = None,
        wall_clock: Callable[[], datetime] | None = None,
    ) -> EtaCalculator:
        """Create an ``EtaCalculator`` from this configuration.

        Args:
            clock: Optional monotonic tick source
            wall_clock: Optional wall-clock reading for the absolute ETA

        Returns:
            Configured calculator
        """
        return EtaCalculator(
            self.minimum_data,
            self.maximum_duration,
            tolerance=self.tolerance,
            regression_policy=RegressionPolicy(self.regression_policy),
            clock=clock,
            wall_clock=wall_clock,
        )


class ApplicationConfig(BaseModel):
    """Logging and command-line output settings."""

    log_level: Annotated[
        str,
        Field(
            description="Logging level",
            pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ] = "INFO"
    syslog_enabled: Annotated[
        bool,
        Field(
            description="Enable syslog integration",
        ),
    ] = False
    refresh_interval: Annotated[
        float,
        Field(
            gt=0,
            description="Seconds between status lines printed by the command-line tool",
        ),
    ] = 1.0


class MainConfig(BaseModel):
    """Root of the configuration file. Both sections are optional."""

    estimator: Annotated[
        EstimatorConfig,
        Field(
            description="ETA calculator configuration",
        ),
    ] = EstimatorConfig()
    application: Annotated[
        ApplicationConfig,
        Field(
            description="Application-level configuration",
        ),
    ] = ApplicationConfig()


class EnvironmentVariableError(Exception):
    """Raised when a ``${VAR}`` reference names an unset environment variable."""


def resolve_env_var(value: str) -> str:
    """Substitute every ``${VAR}`` reference in a string.

    Args:
        value: Raw string read from the configuration file

    Returns:
        The string with each reference replaced by the variable's value

    Raises:
        EnvironmentVariableError: If a referenced variable is not set

    Examples:
        >>> os.environ["ETA_WINDOW"] = "45"
        >>> resolve_env_var("${ETA_WINDOW}")
        '45'
        >>> resolve_env_var("30.0")
        '30.0'
    """

    def lookup(match: re.Match[str]) -> str:
        name = match.group(1)
        try:
            return os.environ[name]
        except KeyError:
            msg = f"Environment variable '{name}' is referenced in the configuration but not set."
            raise EnvironmentVariableError(msg) from None

    return ENV_VAR_PATTERN.sub(lookup, value)


def _resolve_value(value: object) -> object:
    """Resolve references inside one YAML node, recursing into containers."""
    if isinstance(value, str):
        return resolve_env_var(value)
    if isinstance(value, dict):
        return resolve_env_vars_in_dict(value)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    if isinstance(value, list):
        return [_resolve_value(item) for item in value]  # pyright: ignore[reportUnknownVariableType]  # YAML boundary
    return value


def resolve_env_vars_in_dict(data: Mapping[str, object]) -> dict[str, object]:
    """Resolve ``${VAR}`` references throughout a parsed YAML mapping.

    Strings are substituted, mappings and lists are walked recursively and
    every other value is kept unchanged. The input is not modified.

    Args:
        data: Mapping loaded from YAML

    Returns:
        New mapping with all references resolved

    Raises:
        EnvironmentVariableError: If a referenced variable is not set

    Examples:
        >>> os.environ["ETA_LEVEL"] = "DEBUG"
        >>> resolve_env_vars_in_dict({"application": {"log_level": "${ETA_LEVEL}"}})
        {'application': {'log_level': 'DEBUG'}}
    """
    return {key: _resolve_value(value) for key, value in data.items()}


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read, parsed or validated.

    The message is meant to be shown to the user as is: it names the file
    and, for validation failures, every offending field.
    """


def format_validation_error(error: ValidationError, *, source: Path | None = None) -> str:
    """Render a Pydantic validation error as field-level diagnostics.

    Args:
        error: Validation error raised by Pydantic
        source: Configuration file the data came from, if any

    Returns:
        Multi-line message listing each failing field
    """
    lines = ["Configuration validation failed:", ""]
    for detail in error.errors():
        location = " → ".join(str(part) for part in detail["loc"])
        lines.extend(
            [
                f"  Field: {location}",
                f"  Error: {detail['msg']}",
                f"  Type: {detail['type']}",
                "",
            ]
        )

    if source is not None:
        lines.append(f"Configuration file: {source}")

    return "\n".join(lines)


def load_main_config(config_path: Path) -> MainConfig:
    """Read, resolve and validate a configuration file.

    An empty file yields ``MainConfig()``; sections left out of the file
    keep their defaults.

    Args:
        config_path: YAML file to load

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable, malformed,
            references an unset variable or fails validation
    """
    if not config_path.exists():
        msg = (
            f"Configuration file not found: {config_path}\n"
            f"Pass --config with an existing file, or copy config/eta-calculator.yaml."
        )
        raise ConfigurationError(msg)

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = f"Failed to parse YAML in {config_path}:\n{e}"
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Could not read {config_path}: {e}"
        raise ConfigurationError(msg) from e

    if raw_data is None:
        return MainConfig()

    if not isinstance(raw_data, dict):
        msg = f"{config_path}: Expected YAML dictionary at the top level, found {type(raw_data).__name__}"
        raise ConfigurationError(msg)

    try:
        resolved = resolve_env_vars_in_dict(raw_data)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    except EnvironmentVariableError as e:
        msg = f"Environment variable resolution failed in {config_path}: {e}"
        raise ConfigurationError(msg) from e

    try:
        return MainConfig.model_validate(resolved)
    except ValidationError as e:
        raise ConfigurationError(format_validation_error(e, source=config_path)) from e
