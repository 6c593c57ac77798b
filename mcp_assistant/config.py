"""
Configuration management using Pydantic models, YAML and environment variables.
"""

import os
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import validate_timezone

BUILTIN_SERVERS = ("pdf", "search", "gmail", "calendar")

# Environment variable -> (section, field)
ENV_OVERRIDES = {
    "GOOGLE_CLIENT_ID": ("google", "client_id"),
    "GOOGLE_CLIENT_SECRET": ("google", "client_secret"),
    "GOOGLE_REDIRECT_URI": ("google", "redirect_uri"),
    "CALENDAR_DEFAULT_TZ": ("defaults", "timezone"),
    "SERPAPI_KEY": ("search", "serpapi_key"),
    "OPENAI_API_KEY": ("llm", "openai_api_key"),
    "OPENAI_MODEL": ("llm", "openai_model"),
    "LOCAL_MODEL_URL": ("llm", "local_model_url"),
    "LOCAL_MODEL": ("llm", "local_model"),
    "MCP_ASSISTANT_LOG_LEVEL": (None, "log_level"),
}


class DefaultsConfig(BaseModel):
    """Default settings for calendar lookups."""
    timezone: str = "America/Chicago"
    duration_minutes: int = 30
    search_days: int = 7

    @field_validator("timezone")
    @classmethod
    def validate_tz(cls, value: str) -> str:
        return validate_timezone(value)

    @field_validator("duration_minutes", "search_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and lookahead are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value


class GoogleConfig(BaseModel):
    """OAuth client settings shared by the calendar and Gmail servers."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://127.0.0.1:53682/oauth2callback"
    token_dir: Path = Field(default=Path(".tokens"))
    oauth_timeout_seconds: float = 300.0

    @field_validator("oauth_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("oauth_timeout_seconds must be greater than zero")
        return value

    def token_file(self, service: str) -> Path:
        """Path of the persisted token for ``service`` (``calendar`` or ``gmail``)."""
        return self.token_dir / f"{service}.json"


class SearchConfig(BaseModel):
    """Web search provider settings."""
    serpapi_key: Optional[str] = None
    endpoint: str = "https://serpapi.com/search.json"
    default_results: int = 5


class LLMConfig(BaseModel):
    """Text generation backends: OpenAI first, local Ollama as fallback."""
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    local_model_url: str = "http://localhost:11434"
    local_model: str = "llama3.1"
    temperature: float = 0.2
    request_timeout: float = 120.0


class ServerConfig(BaseModel):
    """How to spawn one tool server subprocess."""
    name: str
    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def builtin(cls, name: str) -> "ServerConfig":
        """Launch a bundled server with the running interpreter."""
        return cls(
            name=name,
            command=sys.executable,
            args=["-m", "mcp_assistant", "serve", name],
        )


def _default_servers() -> List[ServerConfig]:
    return [ServerConfig.builtin(name) for name in BUILTIN_SERVERS]


class AppConfig(BaseModel):
    """Application configuration."""
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    servers: List[ServerConfig] = Field(default_factory=_default_servers)
    log_level: str = "INFO"

    @field_validator("servers")
    @classmethod
    def validate_servers(cls, value: List[ServerConfig]) -> List[ServerConfig]:
        """Ensure at least one server is configured and names are unique."""
        if not value:
            raise ValueError("At least one tool server must be configured")
        seen: set[str] = set()
        for server in value:
            key = server.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate server name detected: {server.name}")
            seen.add(key)
        return value

    @model_validator(mode="after")
    def normalize_log_level(self) -> "AppConfig":
        self.log_level = self.log_level.upper()
        return self

    @classmethod
    def load_from_yaml(
        cls,
        config_path: Path,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file
            environ: Optional environment whose values override the file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        data = _read_yaml(config_path)
        if environ is not None:
            data = apply_env_overrides(data, environ)

        return cls(**data)

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """
        Load configuration from YAML (if present) and the environment.

        Values from ``.env`` and the process environment override the file.
        A missing config file is not an error: defaults apply.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        path = config_path or get_default_config_path()
        if path.exists():
            return cls.load_from_yaml(path, environ)

        return cls(**apply_env_overrides({}, environ))


def _read_yaml(config_path: Path) -> dict:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the root level.")

    return data


def apply_env_overrides(data: dict, environ: Mapping[str, str]) -> dict:
    """Return a copy of ``data`` with environment values layered on top."""
    merged = {
        key: dict(value) if isinstance(value, dict) else value
        for key, value in data.items()
    }

    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if not value:
            continue
        if section is None:
            merged[key] = value
        else:
            section_data = merged.get(section)
            if not isinstance(section_data, dict):
                section_data = merged[section] = {}
            section_data[key] = value

    return merged


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
