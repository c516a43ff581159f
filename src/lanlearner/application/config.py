from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from lanlearner.domain.constants import DEFAULT_STORAGE_QUOTA_BYTES, REQUEST_TIMEOUT


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/lanlearner/config.toml",
        Path.home() / ".lanlearner.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for lanlearner.
    Supports loading from:
    1. Config file (~/.config/lanlearner/config.toml)
    2. Environment variables (LANLEARNER_*)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="LANLEARNER_",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/lanlearner")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/lanlearner/logs")

    # Storage
    storage_quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES

    # Collaborators
    page_export_url: str = "http://localhost:8888/.netlify/functions/notion-proxy"
    dictionary_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    request_timeout: float = REQUEST_TIMEOUT

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("storage_quota_bytes")
    @classmethod
    def positive_quota(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("storage_quota_bytes must be positive")
        return v


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/lanlearner/config.toml (if exists)
    3. Environment variables (LANLEARNER_*)
    4. cli_overrides (passed from Typer, None values dropped)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
