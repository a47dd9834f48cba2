"""Centralized configuration loader for YAML-based configuration.

This module loads the dashboard configuration with:
- Environment variable overrides (env var → YAML → defaults)
- Type coercion (string to float, bool, int)
- Schema defaults using a dataclass
- Graceful degradation (missing files use defaults)
"""

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "dashboard.yaml"


def get_project_root() -> Path:
    """
    Get project root directory.

    Uses pattern: config_loader.py → core/ → survey_analytics/ → src/ → project_root
    """
    return Path(__file__).parent.parent.parent.parent


def default_config_path() -> Path:
    """Config file location, overridable with SURVEY_ANALYTICS_CONFIG."""
    env_path = os.getenv("SURVEY_ANALYTICS_CONFIG")
    if env_path:
        return Path(env_path)
    return get_project_root() / "config" / CONFIG_FILENAME


def _coerce_type(value: Any, target_type: type) -> Any:
    """
    Coerce value to target type.

    Handles:
    - String "30.0" → float 30.0
    - String "true"/"false" → bool True/False (case-insensitive)
    - String "123" → int 123
    - String "a,b" → list ["a", "b"]

    Raises:
        ValueError: If coercion fails
    """
    if value is None:
        return None

    if isinstance(value, target_type) and not (target_type is int and isinstance(value, bool)):
        return value

    if target_type is bool:
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value)

    if target_type is float:
        return float(value)

    if target_type is int:
        if isinstance(value, str):
            return int(float(value))  # Handle "30.0" → 30
        return int(value)

    if target_type is list:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        raise ValueError(f"Cannot coerce {type(value).__name__} to list")

    if target_type is str:
        return str(value)

    return value


def _apply_env_overrides(config: dict[str, Any], env_mapping: dict[str, str]) -> dict[str, Any]:
    """
    Apply environment variable overrides to config.

    Explicit mapping first (env var name → config key), then any env var
    matching a config key in upper case.
    """
    result = config.copy()
    applied: set[str] = set()

    for env_key, config_key in env_mapping.items():
        env_value = os.getenv(env_key)
        if env_value is None or config_key not in result:
            continue
        target_type = type(result[config_key])
        try:
            result[config_key] = _coerce_type(env_value, target_type)
            applied.add(config_key)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to coerce env var {env_key}={env_value} to {target_type.__name__}: {e}")

    for config_key in result.keys():
        if config_key in applied:
            continue
        env_value = os.getenv(config_key.upper())
        if env_value is None:
            continue
        target_type = type(result[config_key])
        try:
            result[config_key] = _coerce_type(env_value, target_type)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to coerce env var {config_key.upper()}={env_value} to {target_type.__name__}: {e}")

    return result


@dataclass
class DashboardConfigDefaults:
    """Default values for dashboard configuration."""

    database_url: str = "sqlite:///./data/survey_analytics.db"
    sql_echo: bool = False
    cors_origins: list = field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    reference_cache_ttl_seconds: float = 60.0
    ollama_base_url: str = "http://localhost:11434"
    ollama_default_model: str = "llama3.1:8b"
    ollama_timeout_seconds: float = 30.0
    llm_timeout_intent_s: float = 30.0
    llm_timeout_answer_s: float = 30.0
    llm_timeout_max_s: float = 60.0
    known_diseases: list = field(default_factory=lambda: ["malaria", "cholera", "heat stress"])
    survey_location: str = "Bariga, Lagos, Nigeria"
    log_level: str = "INFO"

    def to_dict(self) -> dict[str, Any]:
        """Convert dataclass to dictionary."""
        return asdict(self)


def _is_critical_config(key: str) -> bool:
    """Timeouts and TTLs must not silently fall back to defaults."""
    return any(pattern in key.lower() for pattern in ("timeout", "ttl"))


def load_dashboard_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load dashboard config from YAML with env var overrides.

    Precedence: Environment variable → YAML value → Default value

    Args:
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        dict with keys matching DashboardConfigDefaults fields

    Raises:
        ValueError: If YAML is invalid or a critical value has the wrong type
    """
    defaults = DashboardConfigDefaults().to_dict()

    if config_path is None:
        config_path = default_config_path()

    config = defaults.copy()
    if config_path.exists():
        try:
            with open(config_path) as f:
                yaml_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(yaml_data, dict):
            raise ValueError(f"Invalid config in {config_path}: expected a mapping, got {type(yaml_data).__name__}")

        for key, value in yaml_data.items():
            if key not in defaults:
                logger.warning(f"Unknown config key {key!r} in {config_path}, ignoring")
                continue
            target_type = type(defaults[key])
            try:
                config[key] = _coerce_type(value, target_type)
            except (ValueError, TypeError) as e:
                if _is_critical_config(key):
                    raise ValueError(
                        f"Type coercion failed for critical config {key}={value}: "
                        f"expected {target_type.__name__}, got {type(value).__name__}. "
                        f"Error: {e}"
                    ) from e
                logger.warning(
                    f"Failed to coerce YAML value {key}={value} to {target_type.__name__}: {e}, using default"
                )
    else:
        logger.debug(f"Config file not found at {config_path}, using defaults")

    env_mapping = {
        "DATABASE_URL": "database_url",
        "SQL_ECHO": "sql_echo",
        "CORS_ORIGINS": "cors_origins",
        "REFERENCE_CACHE_TTL_SECONDS": "reference_cache_ttl_seconds",
        "OLLAMA_BASE_URL": "ollama_base_url",
        "OLLAMA_DEFAULT_MODEL": "ollama_default_model",
        "OLLAMA_TIMEOUT_SECONDS": "ollama_timeout_seconds",
        "LLM_TIMEOUT_INTENT_S": "llm_timeout_intent_s",
        "LLM_TIMEOUT_ANSWER_S": "llm_timeout_answer_s",
        "LLM_TIMEOUT_MAX_S": "llm_timeout_max_s",
        "LOG_LEVEL": "log_level",
    }

    return _apply_env_overrides(config, env_mapping)
