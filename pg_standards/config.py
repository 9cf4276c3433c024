"""Configuration loading and management for pg-standards."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pg_standards.errors import ConfigError
from pg_standards.models import ValidationRule

CONFIG_FILENAME = "pg-standards.yaml"

_RULE_KEYS = {"required_columns", "required_indexes", "required_constraints", "column_types"}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class AutoStandardsConfig:
    """How standards are applied when no explicit tables are given."""

    selective_fixing: bool = False
    enable_event_triggers: bool = False


@dataclass
class PerformanceConfig:
    log_slow_operations: bool = True
    slow_operation_threshold: int = 1000  # milliseconds
    enable_statistics: bool = True
    cache_duration: int = 300  # seconds


@dataclass
class LoggingConfig:
    channel: str = "pg_standards"
    log_success: bool = False


def default_table_validations() -> dict[str, ValidationRule]:
    return {
        "*_types": ValidationRule(
            required_columns={"id", "name", "created_at", "updated_at"},
            required_indexes={"name_unique"},
        ),
        "permissions*": ValidationRule(
            required_columns={"id", "name", "guard_name", "created_at", "updated_at"},
        ),
    }


@dataclass
class Config:
    """Complete configuration for pg-standards."""

    auto_standards: AutoStandardsConfig = field(default_factory=AutoStandardsConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    table_validations: dict[str, ValidationRule] = field(default_factory=default_table_validations)
    schema: str = "public"

    @property
    def slow_threshold_seconds(self) -> float:
        return self.performance.slow_operation_threshold / 1000


def find_config_file() -> str | None:
    """Search for pg-standards.yaml in cwd, then home dir.

    Returns:
        Path to config file if found, None otherwise.
    """
    cwd_config = Path.cwd() / CONFIG_FILENAME
    if cwd_config.is_file():
        return str(cwd_config)

    home_config = Path.home() / CONFIG_FILENAME
    if home_config.is_file():
        return str(home_config)

    return None


def load_config(
    config_path: str | None = None,
    auto_discover: bool = True,
    environ: dict[str, str] | None = None,
) -> Config:
    """Load configuration from a YAML file, then apply environment overrides.

    Args:
        config_path: Explicit path to config file. If None and auto_discover is True,
                     searches default locations.
        auto_discover: If True and config_path is None, search for config file.
        environ: Environment mapping used for overrides (defaults to os.environ).

    Returns:
        Config object. Returns default config (plus overrides) if no file found.

    Raises:
        FileNotFoundError: An explicit config_path does not exist.
        ConfigError: The file or an override holds a malformed value.
    """
    if config_path is None and auto_discover:
        config_path = find_config_file()

    if config_path is None:
        config = Config()
    else:
        if not os.path.isfile(config_path):
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = _parse_config(data)

    return apply_env_overrides(config, os.environ if environ is None else environ)


def _parse_config(data: dict) -> Config:
    """Parse YAML data into Config object."""
    config = Config()

    if "auto_standards" in data:
        section = _section(data, "auto_standards")
        config.auto_standards = AutoStandardsConfig(
            selective_fixing=_to_bool(section.get("selective_fixing", False), "selective_fixing"),
            enable_event_triggers=_to_bool(
                section.get("enable_event_triggers", False), "enable_event_triggers"
            ),
        )

    if "performance" in data:
        section = _section(data, "performance")
        config.performance = PerformanceConfig(
            log_slow_operations=_to_bool(
                section.get("log_slow_operations", True), "log_slow_operations"
            ),
            slow_operation_threshold=_to_int(
                section.get("slow_operation_threshold", 1000), "slow_operation_threshold"
            ),
            enable_statistics=_to_bool(section.get("enable_statistics", True), "enable_statistics"),
            cache_duration=_to_int(section.get("cache_duration", 300), "cache_duration"),
        )

    if "logging" in data:
        section = _section(data, "logging")
        config.logging = LoggingConfig(
            channel=str(section.get("channel", "pg_standards")),
            log_success=_to_bool(section.get("log_success", False), "log_success"),
        )

    if "table_validations" in data:
        rules = data["table_validations"] or {}
        if not isinstance(rules, dict):
            raise ConfigError("'table_validations' must be a mapping of pattern -> rule")
        config.table_validations = {
            str(pattern): _parse_rule(str(pattern), rule) for pattern, rule in rules.items()
        }

    if "schema" in data:
        config.schema = str(data["schema"])

    return config


def _parse_rule(pattern: str, data: dict | None) -> ValidationRule:
    """Parse one table_validations entry."""
    if data is None:
        return ValidationRule()
    if not isinstance(data, dict):
        raise ConfigError(f"Rule for '{pattern}' must be a mapping")

    unknown = set(data) - _RULE_KEYS
    if unknown:
        raise ConfigError(f"Rule for '{pattern}' has unknown keys: {', '.join(sorted(unknown))}")

    constraints = data.get("required_constraints") or {}
    column_types = data.get("column_types") or {}
    if not isinstance(constraints, dict) or not isinstance(column_types, dict):
        raise ConfigError(
            f"Rule for '{pattern}': required_constraints and column_types must be mappings"
        )

    return ValidationRule(
        required_columns=set(data.get("required_columns") or []),
        required_indexes=set(data.get("required_indexes") or []),
        required_constraints={str(k): str(v) for k, v in constraints.items()},
        column_types={str(k): str(v) for k, v in column_types.items()},
    )


def apply_env_overrides(config: Config, environ) -> Config:
    """Override config values from PG_STANDARDS_* environment variables."""
    env = {
        "PG_STANDARDS_SELECTIVE_FIXING": ("auto_standards", "selective_fixing", _to_bool),
        "PG_STANDARDS_EVENT_TRIGGERS": ("auto_standards", "enable_event_triggers", _to_bool),
        "PG_STANDARDS_LOG_SLOW_OPS": ("performance", "log_slow_operations", _to_bool),
        "PG_STANDARDS_SLOW_THRESHOLD": ("performance", "slow_operation_threshold", _to_int),
        "PG_STANDARDS_STATISTICS": ("performance", "enable_statistics", _to_bool),
        "PG_STANDARDS_CACHE_DURATION": ("performance", "cache_duration", _to_int),
        "PG_STANDARDS_LOG_CHANNEL": ("logging", "channel", lambda v, _name: v),
        "PG_STANDARDS_LOG_SUCCESS": ("logging", "log_success", _to_bool),
    }
    for var, (section, attr, convert) in env.items():
        if var in environ:
            setattr(getattr(config, section), attr, convert(environ[var], var))
    return config


def _section(data: dict, name: str) -> dict:
    section = data[name] or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return section


def _to_bool(value, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {value!r}")


def _to_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name}: expected an integer, got {value!r}") from e
