"""Config module initialization."""
from .settings import (
    # Core configuration
    PipelineConfig,
    Profile,
    load_config_file,
    resolve_profile,
    BASE_DIR,
    DEFAULT_FIXTURES_PATH,
    FIXTURES_PATH,
    DATABASE_PATH,
    VERBOSE,
    # LLM configuration
    LLM_MODEL,
    EMBEDDING_MODEL,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS,
    # Pipeline configuration
    TABLE_TOP_K,
    COLUMN_LIMIT,
    EXAMPLE_TOP_K,
    MAX_WORKSPACES,
    # Validation
    ConfigurationError,
    provider_for_model,
    validate_api_key,
)

__all__ = [
    # Core configuration
    "PipelineConfig",
    "Profile",
    "load_config_file",
    "resolve_profile",
    "BASE_DIR",
    "DEFAULT_FIXTURES_PATH",
    "FIXTURES_PATH",
    "DATABASE_PATH",
    "VERBOSE",
    # LLM configuration
    "LLM_MODEL",
    "EMBEDDING_MODEL",
    "LLM_TEMPERATURE",
    "LLM_TIMEOUT_SECONDS",
    # Pipeline configuration
    "TABLE_TOP_K",
    "COLUMN_LIMIT",
    "EXAMPLE_TOP_K",
    "MAX_WORKSPACES",
    # Validation
    "ConfigurationError",
    "provider_for_model",
    "validate_api_key",
]
