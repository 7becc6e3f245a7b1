"""Configuration for the CI harness.

Values come from the Amplify configuration artifact generated for the
backend under test:
- Gen1: amplifyconfiguration.json (flat ``aws_*`` keys)
- Gen2: amplify_outputs.json (``auth`` / ``data`` / ``storage`` sections)

JSON artifacts are parsed with ``json``; a hand-written ``.yaml``/``.yml``
file with the same keys goes through ``yaml.safe_load``.

Harness settings that are not part of the artifact (artifact path, HTTP
timeout, static credentials) are read from the environment, falling back to
``.env`` and ``.env.defaults`` in the working directory or repository root.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "src/amplifyconfiguration.json"
DEFAULT_HTTP_TIMEOUT = 30.0

# Artifact key names per generation, used for lookups and error messages
GEN1_KEYS = {
    "user_pool_id": "aws_user_pools_id",
    "client_id": "aws_user_pools_web_client_id",
    "region": "aws_cognito_region",
    "identity_pool_id": "aws_cognito_identity_pool_id",
    "graphql_endpoint": "aws_appsync_graphqlEndpoint",
    "graphql_region": "aws_appsync_region",
    "api_key": "aws_appsync_apiKey",
    "bucket": "aws_user_files_s3_bucket",
    "bucket_region": "aws_user_files_s3_bucket_region",
}

GEN2_KEYS = {
    "user_pool_id": "auth.user_pool_id",
    "client_id": "auth.user_pool_client_id",
    "region": "auth.aws_region",
    "identity_pool_id": "auth.identity_pool_id",
    "graphql_endpoint": "data.url",
    "graphql_region": "data.aws_region",
    "api_key": "data.api_key",
    "bucket": "storage.bucket_name",
    "bucket_region": "storage.aws_region",
}


class ConfigurationError(ValueError):
    """Raised when the configuration artifact is unreadable or incomplete."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


@dataclass(frozen=True)
class ProviderConfig:
    """Identity provider coordinates needed to provision a user."""
    user_pool_id: str
    client_id: str
    region: str
    generation: str = "gen1"

    @property
    def key_names(self) -> Dict[str, str]:
        return GEN2_KEYS if self.generation == "gen2" else GEN1_KEYS

    def validate(self) -> None:
        """
        Check every required field is present and non-empty.

        Raises:
            ConfigurationError: naming the first missing artifact key
        """
        for attr in ("user_pool_id", "client_id", "region"):
            if not getattr(self, attr):
                key = self.key_names[attr]
                raise ConfigurationError(f"Missing {key} in Amplify configuration", field_name=key)


@dataclass(frozen=True)
class HarnessConfig:
    """Everything the harness reads from the artifact."""
    provider: ProviderConfig
    identity_pool_id: str = ""
    graphql_endpoint: str = ""
    graphql_region: str = ""
    api_key: str = ""
    bucket: str = ""
    bucket_region: str = ""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    source_path: Optional[str] = field(default=None, compare=False)

    @property
    def has_graphql(self) -> bool:
        return bool(self.graphql_endpoint and self.api_key)

    @property
    def has_storage(self) -> bool:
        return bool(self.bucket and self.identity_pool_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], http_timeout: float = DEFAULT_HTTP_TIMEOUT,
                  source_path: Optional[str] = None) -> "HarnessConfig":
        """Build from a parsed Gen1 or Gen2 artifact."""
        if not isinstance(data, dict):
            raise ConfigurationError("Invalid Amplify configuration: root must be a mapping")

        generation = detect_generation(data)
        keys = GEN2_KEYS if generation == "gen2" else GEN1_KEYS
        values = {name: _lookup(data, dotted) for name, dotted in keys.items()}

        provider = ProviderConfig(
            user_pool_id=values["user_pool_id"],
            client_id=values["client_id"],
            region=values["region"],
            generation=generation,
        )
        return cls(
            provider=provider,
            identity_pool_id=values["identity_pool_id"],
            graphql_endpoint=values["graphql_endpoint"],
            graphql_region=values["graphql_region"] or values["region"],
            api_key=values["api_key"],
            bucket=values["bucket"],
            bucket_region=values["bucket_region"] or values["region"],
            http_timeout=http_timeout,
            source_path=source_path,
        )


def detect_generation(data: Dict[str, Any]) -> str:
    """Gen2 outputs group values in sections, Gen1 uses flat aws_* keys."""
    if isinstance(data.get("auth"), dict) or isinstance(data.get("data"), dict):
        return "gen2"
    return "gen1"


def _lookup(data: Dict[str, Any], dotted: str) -> str:
    node: Any = data
    for part in dotted.split("."):
        if not isinstance(node, dict):
            return ""
        node = node.get(part)
    if node is None:
        return ""
    return str(node).strip()


def load_artifact(path: str | Path) -> Dict[str, Any]:
    """
    Read and parse the configuration artifact.

    ``.json`` files go through ``json``; anything else (``.yaml``, ``.yml``)
    through ``yaml.safe_load``.

    Raises:
        ConfigurationError: if the file is missing, empty or not valid JSON/YAML
    """
    artifact = Path(path)
    if not artifact.exists():
        raise ConfigurationError(f"Amplify configuration not found: {artifact}")

    text = artifact.read_text(encoding="utf-8")
    if not text.strip():
        raise ConfigurationError(f"Amplify configuration is empty: {artifact}")

    try:
        if artifact.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to parse Amplify configuration {artifact}: {e}") from e

    if data is None:
        raise ConfigurationError(f"Amplify configuration is empty: {artifact}")
    return data


def load_config(path: str | Path | None = None) -> HarnessConfig:
    """Load the harness configuration from the artifact at ``path``.

    Falls back to AMPLIFY_CONFIG_PATH, then to the Gen1 default location.
    """
    config_path = Path(path or get_setting("AMPLIFY_CONFIG_PATH", DEFAULT_CONFIG_PATH))
    data = load_artifact(config_path)

    timeout_raw = get_setting("HARNESS_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))
    try:
        http_timeout = float(timeout_raw)
    except ValueError as e:
        raise ConfigurationError(f"HARNESS_HTTP_TIMEOUT must be a number, got {timeout_raw!r}") from e

    config = HarnessConfig.from_dict(data, http_timeout=http_timeout, source_path=str(config_path))
    logger.debug(f"Loaded {config.provider.generation} configuration from {config_path}")
    return config


# =============================================================================
# Harness settings: environment, then .env, then .env.defaults
# =============================================================================

# Highest precedence first
SETTINGS_FILES = (".env", ".env.defaults")
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def get_setting(key: str, fallback: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty value for key, or fallback.

    Lookup order: process environment, ``.env``, ``.env.defaults``. Within
    each file name the working directory wins over the project root, so a
    checkout of the app under test can override the harness defaults.
    """
    value = os.environ.get(key) or load_env_defaults().get(key)
    return value if value else fallback


@lru_cache(maxsize=1)
def load_env_defaults() -> Dict[str, str]:
    """Settings from every ``.env``/``.env.defaults`` found, first non-empty value kept."""
    settings: Dict[str, str] = {}
    for settings_file in _settings_files():
        for key, value in _parse_env_file(settings_file).items():
            if value:
                settings.setdefault(key, value)
    return settings


def _settings_files() -> list[Path]:
    directories = [Path.cwd().resolve(), PROJECT_ROOT]
    candidates = [directory / name for name in SETTINGS_FILES for directory in directories]
    # cwd may be the project root
    return [path for path in dict.fromkeys(candidates) if path.is_file()]


def _parse_env_file(env_path: Path) -> Dict[str, str]:
    """Parse KEY=value lines; comments, blanks and lines without ``=`` are skipped."""
    values: Dict[str, str] = {}
    for raw in env_path.read_text(encoding="utf-8").splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        values[key.strip()] = _unquote(value.strip())
    return values


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value
