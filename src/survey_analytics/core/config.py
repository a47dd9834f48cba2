"""Dashboard configuration constants.

Single source of truth for service URLs, timeouts and cache TTLs.
Values come from config/dashboard.yaml with environment variable overrides.
"""

from survey_analytics.core.config_loader import load_dashboard_config

_config = load_dashboard_config()

# Relational store
DATABASE_URL: str = _config["database_url"]
SQL_ECHO: bool = _config["sql_echo"]

# HTTP
CORS_ORIGINS: list[str] = _config["cors_origins"]

# Static reference data (diseases, questions, summary)
REFERENCE_CACHE_TTL_SECONDS: float = _config["reference_cache_ttl_seconds"]

# Local Ollama LLM
OLLAMA_BASE_URL: str = _config["ollama_base_url"]
OLLAMA_DEFAULT_MODEL: str = _config["ollama_default_model"]
OLLAMA_TIMEOUT_SECONDS: float = _config["ollama_timeout_seconds"]

# Per-feature LLM timeouts, capped by LLM_TIMEOUT_MAX_S
LLM_TIMEOUT_INTENT_S: float = _config["llm_timeout_intent_s"]
LLM_TIMEOUT_ANSWER_S: float = _config["llm_timeout_answer_s"]
LLM_TIMEOUT_MAX_S: float = _config["llm_timeout_max_s"]

# Prompt context
KNOWN_DISEASES: list[str] = _config["known_diseases"]
SURVEY_LOCATION: str = _config["survey_location"]

LOG_LEVEL: str = _config["log_level"]
