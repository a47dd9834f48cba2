"""Tests for config_loader module.

- AAA pattern (Arrange-Act-Assert)
- Test isolation (tmp_path config files, monkeypatched environment)
"""

import pytest
import yaml

from survey_analytics.core.config_loader import (
    DashboardConfigDefaults,
    _coerce_type,
    default_config_path,
    get_project_root,
    load_dashboard_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove overrides that would leak in from the developer's shell."""
    for name in (
        "DATABASE_URL",
        "SQL_ECHO",
        "CORS_ORIGINS",
        "REFERENCE_CACHE_TTL_SECONDS",
        "OLLAMA_BASE_URL",
        "OLLAMA_DEFAULT_MODEL",
        "OLLAMA_TIMEOUT_SECONDS",
        "LLM_TIMEOUT_INTENT_S",
        "LLM_TIMEOUT_ANSWER_S",
        "LLM_TIMEOUT_MAX_S",
        "KNOWN_DISEASES",
        "SURVEY_LOCATION",
        "LOG_LEVEL",
        "SURVEY_ANALYTICS_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDashboardConfig:
    """Test suite for dashboard configuration loading."""

    def test_load_dashboard_config_missing_file_uses_defaults(self, tmp_path):
        # Act
        config = load_dashboard_config(config_path=tmp_path / "missing.yaml")

        # Assert
        assert config == DashboardConfigDefaults().to_dict()

    def test_load_dashboard_config_loads_from_yaml_file(self, tmp_path):
        # Arrange
        config_file = tmp_path / "dashboard.yaml"
        config_file.write_text(
            yaml.dump(
                {
                    "reference_cache_ttl_seconds": 5,
                    "ollama_default_model": "llama3.2:3b",
                    "known_diseases": ["malaria"],
                    "sql_echo": "true",
                }
            )
        )

        # Act
        config = load_dashboard_config(config_path=config_file)

        # Assert
        assert config["reference_cache_ttl_seconds"] == 5.0
        assert isinstance(config["reference_cache_ttl_seconds"], float)
        assert config["ollama_default_model"] == "llama3.2:3b"
        assert config["known_diseases"] == ["malaria"]
        assert config["sql_echo"] is True

    def test_load_dashboard_config_env_overrides_yaml(self, tmp_path, monkeypatch):
        # Arrange
        config_file = tmp_path / "dashboard.yaml"
        config_file.write_text(yaml.dump({"llm_timeout_max_s": 40.0}))
        monkeypatch.setenv("LLM_TIMEOUT_MAX_S", "15")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("KNOWN_DISEASES", "malaria,dengue")

        # Act
        config = load_dashboard_config(config_path=config_file)

        # Assert
        assert config["llm_timeout_max_s"] == 15.0
        assert config["cors_origins"] == ["http://a.test", "http://b.test"]
        assert config["known_diseases"] == ["malaria", "dengue"]

    def test_load_dashboard_config_critical_type_failure_raises(self, tmp_path):
        # Arrange
        config_file = tmp_path / "dashboard.yaml"
        config_file.write_text(yaml.dump({"reference_cache_ttl_seconds": "soon"}))

        # Act & Assert
        with pytest.raises(ValueError, match="Type coercion failed for critical config"):
            load_dashboard_config(config_path=config_file)

    def test_load_dashboard_config_invalid_yaml_raises(self, tmp_path):
        # Arrange
        config_file = tmp_path / "dashboard.yaml"
        config_file.write_text("known_diseases: [malaria\n")

        # Act & Assert
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_dashboard_config(config_path=config_file)

    def test_load_dashboard_config_non_mapping_raises(self, tmp_path):
        # Arrange
        config_file = tmp_path / "dashboard.yaml"
        config_file.write_text(yaml.dump(["malaria"]))

        # Act & Assert
        with pytest.raises(ValueError, match="expected a mapping"):
            load_dashboard_config(config_path=config_file)

    def test_load_dashboard_config_ignores_unknown_keys(self, tmp_path):
        # Arrange
        config_file = tmp_path / "dashboard.yaml"
        config_file.write_text(yaml.dump({"not_a_setting": 1}))

        # Act
        config = load_dashboard_config(config_path=config_file)

        # Assert
        assert "not_a_setting" not in config

    def test_shipped_config_matches_defaults_keys(self):
        # Act
        config = load_dashboard_config(config_path=get_project_root() / "config" / "dashboard.yaml")

        # Assert
        assert set(config) == set(DashboardConfigDefaults().to_dict())
        assert config["known_diseases"] == ["malaria", "cholera", "heat stress"]

    def test_default_config_path_env_override(self, tmp_path, monkeypatch):
        # Arrange
        monkeypatch.setenv("SURVEY_ANALYTICS_CONFIG", str(tmp_path / "custom.yaml"))

        # Act & Assert
        assert default_config_path() == tmp_path / "custom.yaml"


class TestCoerceType:
    @pytest.mark.parametrize(
        "value, target, expected",
        [
            ("30.0", float, 30.0),
            ("TRUE", bool, True),
            ("off", bool, False),
            ("30.0", int, 30),
            ("a, b", list, ["a", "b"]),
            (7, str, "7"),
            (None, float, None),
        ],
    )
    def test_coerce_type(self, value, target, expected):
        # Act & Assert
        assert _coerce_type(value, target) == expected

    def test_coerce_type_invalid_float_raises(self):
        # Act & Assert
        with pytest.raises(ValueError):
            _coerce_type("soon", float)
