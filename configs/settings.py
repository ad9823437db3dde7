"""
Configuration management for QueryGPT.

This module handles all configuration loading and validation.
Environment variables (optionally from a .env file) provide the
defaults; an optional YAML config file adds named profiles with
fixture and database locations.

The pipeline itself never reads this module's globals: callers build
a PipelineConfig (usually via PipelineConfig.from_env()) and pass it
to the orchestrator constructor.
"""
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
# interpolate=False prevents $VAR expansion in values (important for passwords with $ characters)
load_dotenv(interpolate=False)


# =============================================================================
# CONFIGURATION VALIDATION
# =============================================================================

class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


PLACEHOLDER_KEYS = {
    "",
    "your_openai_api_key_here",
    "your_groq_api_key_here",
    "your_google_api_key_here",
    "sk-XXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX",
}


def provider_for_model(model: str) -> str:
    """Infer the LLM provider from a litellm model string."""
    prefix = model.split("/", 1)[0].lower() if "/" in model else ""
    if prefix in ("gemini", "groq"):
        return prefix
    return "openai"


def validate_api_key(model: str) -> str:
    """
    Validate that an API key is configured for the provider serving `model`.
    Returns the API key if valid, raises ConfigurationError otherwise.
    """
    provider = provider_for_model(model)
    if provider == "gemini":
        key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        env_name = "GEMINI_API_KEY"
    elif provider == "groq":
        key = os.getenv("GROQ_API_KEY")
        env_name = "GROQ_API_KEY"
    else:
        key = os.getenv("OPENAI_API_KEY")
        env_name = "OPENAI_API_KEY"

    if key is None or key.strip() in PLACEHOLDER_KEYS:
        raise ConfigurationError(
            f"{env_name} is not configured for model '{model}'.\n"
            f"   Add it to your .env file, or run with --dry-run."
        )
    return key


# =============================================================================
# BASE PATHS
# =============================================================================

BASE_DIR = Path(__file__).parent.parent
DEFAULT_FIXTURES_PATH = BASE_DIR / "querygpt" / "fixtures"
DEFAULT_CONFIG_PATH = BASE_DIR / "config.yml"

# =============================================================================
# LLM CONFIGURATION
# =============================================================================

LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4.1-mini")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.1"))

# Per-call timeout; expiry is handled like an unparsable response
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

# =============================================================================
# PIPELINE SETTINGS
# =============================================================================

TABLE_TOP_K = int(os.getenv("TABLE_TOP_K", "3"))
COLUMN_LIMIT = int(os.getenv("COLUMN_LIMIT", "15"))
EXAMPLE_TOP_K = int(os.getenv("EXAMPLE_TOP_K", "5"))
MAX_WORKSPACES = int(os.getenv("MAX_WORKSPACES", "2"))

# =============================================================================
# DATA LOCATIONS
# =============================================================================

FIXTURES_PATH = os.getenv("FIXTURES_PATH", str(DEFAULT_FIXTURES_PATH))
DATABASE_PATH = os.getenv("DATABASE_PATH", "")

VERBOSE = os.getenv("VERBOSE", "false").lower() == "true"


@dataclass(frozen=True)
class PipelineConfig:
    """Explicit settings handed to QueryPipeline and the model client."""
    chat_model: str = "gpt-4.1-mini"
    embedding_model: str = "text-embedding-3-small"
    temperature: float = 0.1
    timeout_seconds: float = 30.0
    table_top_k: int = 3
    column_limit: int = 15
    example_top_k: int = 5
    max_workspaces: int = 2

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from the environment-derived module settings."""
        return cls(
            chat_model=LLM_MODEL,
            embedding_model=EMBEDDING_MODEL,
            temperature=LLM_TEMPERATURE,
            timeout_seconds=LLM_TIMEOUT_SECONDS,
            table_top_k=TABLE_TOP_K,
            column_limit=COLUMN_LIMIT,
            example_top_k=EXAMPLE_TOP_K,
            max_workspaces=MAX_WORKSPACES,
        )


# =============================================================================
# CONFIG FILE (PROFILES)
# =============================================================================

_ENV_PATTERN = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _expand_env(value: Any) -> Any:
    """Recursively substitute ${VAR} and ${VAR:-default} in string values."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.getenv(m.group(1), m.group(2) or ""), value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def load_config_file(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the optional YAML config file.

    Returns an empty dict when the file does not exist. Raises
    ConfigurationError when it exists but is not a YAML mapping.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return {}

    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")
    return _expand_env(data)


@dataclass(frozen=True)
class Profile:
    """Resolved profile: where fixtures live and which database to execute on."""
    name: Optional[str]
    fixtures_path: str
    database: Dict[str, Any]
    schema_export: Dict[str, Any] = field(default_factory=dict)


def resolve_profile(config: Dict[str, Any], name: Optional[str] = None) -> Profile:
    """
    Resolve fixture and database settings for a profile.

    Lookup order for fixtures: profile `fixtures_path`, top-level
    `fixtures_path`, FIXTURES_PATH env. The profile's `database` block
    is merged over `default_db`, and its `schema_export` block over the
    top-level `schema_export`.
    """
    profiles = config.get("profiles") or {}
    profile_cfg: Dict[str, Any] = {}
    if name is not None:
        if name not in profiles:
            raise ConfigurationError(f"Profile '{name}' not found in config profiles")
        profile_cfg = profiles[name] or {}

    fixtures_path = (
        profile_cfg.get("fixtures_path")
        or config.get("fixtures_path")
        or FIXTURES_PATH
    )

    database: Dict[str, Any] = dict(config.get("default_db") or {})
    database.update(profile_cfg.get("database") or {})
    if not database.get("path") and DATABASE_PATH:
        database["path"] = DATABASE_PATH

    schema_export: Dict[str, Any] = dict(config.get("schema_export") or {})
    schema_export.update(profile_cfg.get("schema_export") or {})

    return Profile(name=name, fixtures_path=str(fixtures_path), database=database,
                   schema_export=schema_export)
