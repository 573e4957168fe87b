"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- GitHubConfig: GitHub REST API access settings
- WordPressConfig: Publish target settings
- DigestConfig: Article defaults (lookback window, default tags)
- LoggingConfig: Logging behavior
- StateConfig: Optional durable publication state
- AppConfig: Root configuration container

Credentials are resolved separately (see ``resolve_credentials``) from a
JSON credentials file, the YAML config, or environment variables.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
import os
from pathlib import Path
from typing import Any

import yaml

from .core.errors import ConfigError


@dataclass
class GitHubConfig:
    """Configuration for the GitHub REST API.

    Attributes:
        api_url: Base URL of the REST API
        token: Inline personal access token (optional)
        token_env: Environment variable holding the token
        timeout_seconds: HTTP request timeout
        per_page: Page size requested from list endpoints
        retries: Retry attempts for transport failures (0 disables retries)
        user_agent: HTTP User-Agent header string
    """

    api_url: str = "https://api.github.com"
    token: str | None = None
    token_env: str = "GITHUB_TOKEN"
    timeout_seconds: float = 20.0
    per_page: int = 100
    retries: int = 0
    user_agent: str = "repo-digest/0.1"


@dataclass
class WordPressConfig:
    """Configuration for the WordPress publish target.

    Attributes:
        url: Site base URL (e.g. https://blog.example.com)
        username: WordPress user name
        password: Application password for basic authentication
        status: Default post status ("publish", "draft" or "private")
        categories: Default category names applied to every post
    """

    url: str | None = None
    username: str | None = None
    password: str | None = None
    status: str = "publish"
    categories: list[str] = field(default_factory=list)


@dataclass
class DigestConfig:
    """Article defaults.

    Attributes:
        lookback_days: Window used when a repository has never been published
        default_tags: Tags merged into every article
    """

    lookback_days: int = 30
    default_tags: list[str] = field(default_factory=lambda: ["GitHub", "Development", "Updates"])


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "repo_digest.jsonl"


@dataclass
class StateConfig:
    """Publication state persistence.

    Attributes:
        path: JSON file for publication state; None keeps state in memory only
    """

    path: str | None = None


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    wordpress: WordPressConfig = field(default_factory=WordPressConfig)
    digest: DigestConfig = field(default_factory=DigestConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    state: StateConfig = field(default_factory=StateConfig)


@dataclass
class Credentials:
    """Resolved secrets and endpoints consumed by the pipeline."""

    github_token: str | None = None
    publish_url: str | None = None
    publish_username: str | None = None
    publish_password: str | None = None

    @property
    def has_publish_target(self) -> bool:
        return bool(self.publish_url and self.publish_username and self.publish_password)


DEFAULT_CONFIG = AppConfig()


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return _fromdict(asdict(DEFAULT_CONFIG))

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return _merge_config(DEFAULT_CONFIG, raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    try:
        return AppConfig(
            github=GitHubConfig(**data["github"]),
            wordpress=WordPressConfig(**data["wordpress"]),
            digest=DigestConfig(**data["digest"]),
            logging=LoggingConfig(**data["logging"]),
            state=StateConfig(**data["state"]),
        )
    except TypeError as exc:
        raise ConfigError(f"Unknown configuration option: {exc}") from exc


# JSON credential file keys, snake_case and camelCase spellings.
_CREDENTIAL_KEYS = {
    "github_token": ("github_token", "githubToken"),
    "publish_url": ("wordpress_url", "wordpressUrl", "publish_url", "publishUrl"),
    "publish_username": (
        "wordpress_username",
        "wordpressUsername",
        "publish_username",
        "publishUsername",
    ),
    "publish_password": (
        "wordpress_password",
        "wordpressPassword",
        "publish_password",
        "publishPassword",
    ),
}


def load_credentials(path: Path) -> Credentials:
    """Read a JSON credentials file.

    Raises:
        ConfigError: If the file is unreadable or not a JSON object
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read credentials file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Credentials file {path} must contain a JSON object")

    values: dict[str, str | None] = {}
    for field_name, aliases in _CREDENTIAL_KEYS.items():
        values[field_name] = next((raw[alias] for alias in aliases if raw.get(alias)), None)
    return Credentials(**values)


def save_credentials(path: Path, credentials: Credentials) -> None:
    """Write credentials as JSON using the snake_case field names."""
    payload = {
        "github_token": credentials.github_token,
        "wordpress_url": credentials.publish_url,
        "wordpress_username": credentials.publish_username,
        "wordpress_password": credentials.publish_password,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{json.dumps(payload, indent=2)}\n", encoding="utf-8")
    os.chmod(path, 0o600)


def get_github_token(cfg: GitHubConfig) -> str | None:
    """Get the GitHub token from inline config or environment variable."""
    if cfg.token:
        return cfg.token
    return os.getenv(cfg.token_env) if cfg.token_env else None


def resolve_credentials(cfg: AppConfig, credentials_file: Path | None = None) -> Credentials:
    """Resolve credentials from file, then config, then environment.

    Each field is taken from the first source that provides it.
    """
    from_file = load_credentials(credentials_file) if credentials_file else Credentials()
    wp = cfg.wordpress
    return Credentials(
        github_token=from_file.github_token or get_github_token(cfg.github),
        publish_url=from_file.publish_url or wp.url or os.getenv("WORDPRESS_URL"),
        publish_username=(
            from_file.publish_username or wp.username or os.getenv("WORDPRESS_USERNAME")
        ),
        publish_password=(
            from_file.publish_password or wp.password or os.getenv("WORDPRESS_APP_PASSWORD")
        ),
    )
