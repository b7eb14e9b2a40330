"""Configuration loader and settings helpers for Review_Ingestor."""

import base64
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from boto3.session import Session
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic import (
    ValidationError as PydanticValidationError,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "REVIEWS_"

# Enforced even when a template omits them.
ALWAYS_REQUIRED_ENV = frozenset({"REVIEWS_DATABASE_URL", "REVIEWS_S3__BUCKET"})

BASE_TEMPLATE = "settings.base.yaml"


def load_yaml_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load one YAML configuration template.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary (empty for an empty file)

    Raises:
        ConfigurationError: If file not found, invalid YAML or not a mapping
    """
    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration template {config_path} must be a mapping")
    return config


class AWSSettings(BaseModel):
    """AWS session options shared by the S3 and Secrets Manager clients."""

    model_config = ConfigDict(extra="forbid")

    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None

    def session_kwargs(self) -> dict[str, str]:
        """Keyword arguments for :class:`boto3.session.Session`."""

        kwargs: dict[str, str] = {}
        if self.region:
            kwargs["region_name"] = self.region
        if self.profile:
            kwargs["profile_name"] = self.profile
        return kwargs


class S3Settings(BaseModel):
    """Location of the review files in the object store."""

    model_config = ConfigDict(extra="forbid")

    bucket: str | None = None
    prefix: str = "daily-reviews/"
    suffix: str = ".jl"
    page_size: int = Field(default=1000, ge=1, le=1000)

    @field_validator("prefix")
    @classmethod
    def _strip_leading_slash(cls, value: str) -> str:
        """S3 keys never start with ``/``; an empty prefix lists the whole bucket."""

        return value.lstrip("/")

    @field_validator("suffix")
    @classmethod
    def _require_suffix(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("s3.suffix must not be empty")
        return value.strip()


class ProcessingSettings(BaseModel):
    """Batch processing knobs."""

    model_config = ConfigDict(extra="forbid")

    max_concurrency: int = Field(default=5, ge=1)


class SchedulingSettings(BaseModel):
    """Timer-driven trigger configuration."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    cron: str = "0 2 * * *"

    @field_validator("cron")
    @classmethod
    def _require_cron(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("cron expression must not be empty")
        return value.strip()


class DatabasePoolSettings(BaseModel):
    """Pool sizing for the review database; ignored for SQLite."""

    model_config = ConfigDict(extra="forbid")

    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=10, ge=0)
    timeout: float = Field(default=30.0, gt=0)
    recycle_seconds: int = Field(default=1800, ge=0)
    pre_ping: bool = True


class SecretsManagerSettings(BaseModel):
    """Optional Secrets Manager secret whose ``REVIEWS_*`` keys seed the environment."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    secret_name: str | None = None
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None
    overwrite_env: bool = False
    required_env: list[str] = Field(default_factory=list)

    def merged_with(self, fallback: "SecretsManagerSettings") -> "SecretsManagerSettings":
        """Return these settings with unset fields taken from ``fallback``."""

        return SecretsManagerSettings(
            enabled=self.enabled or fallback.enabled,
            secret_name=self.secret_name or fallback.secret_name,
            region=self.region or fallback.region,
            profile=self.profile or fallback.profile,
            endpoint_url=self.endpoint_url or fallback.endpoint_url,
            overwrite_env=self.overwrite_env or fallback.overwrite_env,
            required_env=sorted({*self.required_env, *fallback.required_env}),
        )


class ServiceConfiguration(BaseModel):
    """Validated runtime configuration merged from base and profile templates."""

    version: int = Field(default=1, ge=1)
    environment: str = "development"
    required_env: list[str] = Field(default_factory=list)
    secrets_manager: SecretsManagerSettings = Field(default_factory=SecretsManagerSettings)

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return value.lower()

    @field_validator("required_env")
    @classmethod
    def _require_prefixed_names(cls, value: list[str]) -> list[str]:
        names = [name.strip().upper() for name in value if name.strip()]
        foreign = [name for name in names if not name.startswith(ENV_PREFIX)]
        if foreign:
            raise ValueError(f"required_env entries must use the {ENV_PREFIX} prefix: {foreign}")
        return names


class GlobalSettings(BaseSettings):
    """Runtime settings read from ``REVIEWS_*`` variables and an optional ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"
    config_profile: str | None = None
    config_dir: Path = Path("config")
    log_level: str = "INFO"
    redis_url: str | None = None
    database_url: str | None = None
    database: DatabasePoolSettings = DatabasePoolSettings()
    aws: AWSSettings = AWSSettings()
    s3: S3Settings = S3Settings()
    processing: ProcessingSettings = ProcessingSettings()
    scheduling: SchedulingSettings = SchedulingSettings()
    secrets_manager: SecretsManagerSettings = SecretsManagerSettings()
    api_keys: list[str] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        """Store level names the way ``logging`` spells them."""

        return value.upper()

    @field_validator("api_keys", mode="before")
    @classmethod
    def _parse_api_keys(cls, value: Any) -> list[str]:
        """Accept a comma-separated string as well as a list of keys."""

        if value is None:
            return []
        if isinstance(value, str):
            keys = [item.strip() for item in value.split(",")]
            return [key for key in keys if key]
        if isinstance(value, list | tuple | set):
            return [str(item) for item in value if str(item).strip()]
        raise ValueError("api_keys must be a comma-separated string or iterable of strings")

    @field_validator("config_dir", mode="before")
    @classmethod
    def _expand_paths(cls, value: Any) -> Any:
        """Accept ``~``-relative template directories."""

        if isinstance(value, str):
            return Path(value).expanduser()
        return value

    @field_validator("config_profile", mode="before")
    @classmethod
    def _normalize_config_profile(cls, value: Any) -> Any:
        if value is None:
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError("config_profile must be a non-empty string if provided")
        return value.strip().lower()

    @property
    def active_profile(self) -> str:
        """Template profile in effect: the explicit profile, else the environment."""

        return (self.config_profile or self.environment).lower()

    @property
    def source_location(self) -> str:
        """Human-readable ``s3://bucket/prefix`` for log lines."""

        return f"s3://{self.s3.bucket or '<unset>'}/{self.s3.prefix}"


def _deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested mappings merge key by key."""

    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


@lru_cache(maxsize=8)
def _load_service_configuration_cached(config_dir: str, profile: str) -> ServiceConfiguration:
    """Merge ``settings.<profile>.yaml`` over the base template and validate it."""

    directory = Path(config_dir)
    base_path = directory / BASE_TEMPLATE
    if not base_path.exists():
        raise ConfigurationError(
            f"Missing base configuration template at '{base_path}'. "
            "Every profile is layered on top of it."
        )

    merged = load_yaml_config(base_path)
    profile_path = directory / f"settings.{profile}.yaml"
    if profile_path.exists():
        merged = _deep_merge_dicts(merged, load_yaml_config(profile_path))
    else:
        logger.debug("No configuration override found for profile '%s'", profile)
    merged.setdefault("environment", profile)

    try:
        return ServiceConfiguration.model_validate(merged)
    except PydanticValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration template for profile '{profile}': {exc}"
        ) from exc


def get_service_configuration(
    settings: GlobalSettings | None = None,
    *,
    reload: bool = False,
) -> ServiceConfiguration:
    """Return the base template merged with the active profile's template."""

    settings = settings or get_settings()
    if reload:
        _load_service_configuration_cached.cache_clear()
    return _load_service_configuration_cached(str(settings.config_dir), settings.active_profile)


def _decode_secret_payload(secret_name: str, response: dict[str, Any]) -> dict[str, str]:
    """Turn a ``GetSecretValue`` response into a flat mapping of variable values."""

    secret_string = response.get("SecretString")
    if secret_string is None:
        secret_binary = response.get("SecretBinary")
        if secret_binary is None:
            return {}
        secret_string = base64.b64decode(secret_binary).decode("utf-8")

    try:
        payload = json.loads(secret_string)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"Secret '{secret_name}' must be a JSON object of environment variables"
        ) from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Secret '{secret_name}' must be a JSON object of key/value pairs")

    # Lists and mappings are re-encoded as JSON so pydantic-settings can decode them.
    return {
        str(key): json.dumps(value) if isinstance(value, dict | list) else str(value)
        for key, value in payload.items()
        if value is not None
    }


def _fetch_secrets_from_manager(
    secret_name: str, secrets_cfg: SecretsManagerSettings, aws: AWSSettings
) -> dict[str, str]:
    """Retrieve ``secret_name``, falling back to the shared AWS session options."""

    session = Session(
        **AWSSettings(
            region=secrets_cfg.region or aws.region,
            profile=secrets_cfg.profile or aws.profile,
        ).session_kwargs()
    )
    client = session.client("secretsmanager", endpoint_url=secrets_cfg.endpoint_url)

    try:
        response = client.get_secret_value(SecretId=secret_name)
    except (BotoCoreError, ClientError) as exc:
        raise ConfigurationError(
            f"Unable to retrieve secret '{secret_name}' "
            f"from AWS Secrets Manager: {exc}"
        ) from exc
    return _decode_secret_payload(secret_name, response)


def _inject_secrets_into_environment(secrets: dict[str, str], *, overwrite: bool) -> list[str]:
    """Export ``REVIEWS_``-prefixed secrets; return the names actually set."""

    injected: list[str] = []
    for key, value in secrets.items():
        env_key = key.upper()
        if not env_key.startswith(ENV_PREFIX):
            logger.debug("Ignoring secret '%s' because it does not use %s prefix", env_key, ENV_PREFIX)
            continue
        if not overwrite and env_key in os.environ:
            continue
        os.environ[env_key] = value
        injected.append(env_key)
    return injected


def load_runtime_secrets(
    settings: GlobalSettings,
    service_config: ServiceConfiguration,
) -> dict[str, str]:
    """Load the Secrets Manager payload, if enabled, and export it to the environment."""

    secrets_cfg = settings.secrets_manager.merged_with(service_config.secrets_manager)
    if not secrets_cfg.enabled:
        return {}
    secret_name = secrets_cfg.secret_name
    if not secret_name:
        raise ConfigurationError("Secrets Manager integration enabled but no secret_name configured")

    secrets = _fetch_secrets_from_manager(secret_name, secrets_cfg, settings.aws)
    injected = _inject_secrets_into_environment(secrets, overwrite=secrets_cfg.overwrite_env)
    logger.info(
        "Loaded %d secrets from AWS Secrets Manager (%d exported)", len(secrets), len(injected)
    )
    return secrets


def missing_required_env(service_config: ServiceConfiguration) -> list[str]:
    """Return the required variables that are unset or empty, sorted by name."""

    required = {
        *ALWAYS_REQUIRED_ENV,
        *service_config.required_env,
        *service_config.secrets_manager.required_env,
    }
    return sorted(name for name in required if not os.environ.get(name))


def ensure_runtime_configuration(settings: GlobalSettings | None = None) -> GlobalSettings:
    """
    Validate templates, load secrets and check the required environment.

    Every entry point (API, worker, CLI, migrations) calls this before touching
    the bucket or the database.

    Returns:
        Settings reloaded if secrets changed the environment

    Raises:
        ConfigurationError: If a template is invalid, the secret cannot be
            read, or required variables are missing
    """
    settings = settings or get_settings()
    service_config = get_service_configuration(settings=settings, reload=True)

    if load_runtime_secrets(settings, service_config):
        settings = get_settings(reload=True)

    missing = missing_required_env(service_config)
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: "
            f"{', '.join(missing)}. Configure them via configuration templates, "
            "Secrets Manager, or .env files."
        )

    logger.debug(
        "Runtime configuration ready for %s (profile=%s)",
        settings.source_location,
        settings.active_profile,
    )
    return settings


@lru_cache(maxsize=1)
def _get_settings_cached() -> GlobalSettings:
    return GlobalSettings()


def get_settings(*, reload: bool = False) -> GlobalSettings:
    """Return the process settings; ``reload=True`` re-reads the environment."""

    if reload:
        _get_settings_cached.cache_clear()
    return _get_settings_cached()
