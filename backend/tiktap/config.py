"""Configuration management with YAML and environment variable support."""

from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional

import yaml
from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from YAML file."""

    def get_field_value(self, field, field_name: str):
        # Not used with prepare method
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        # Load from config.yaml in current directory
        yaml_path = Path("config.yaml")
        if not yaml_path.exists():
            return {}

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class AssemblyStrategy(str, Enum):
    """Where the final video is put together."""

    REMOTE = "remote"
    LOCAL = "local"


class FootageSelection(str, Enum):
    """How one clip is picked from stock search results for local assembly."""

    RANDOM = "random"
    FIRST = "first"


class FootageQuerySource(str, Enum):
    """What the stock footage search query is derived from."""

    TEMPLATE = "template"
    SCRIPT = "script"


class ProvidersConfig(BaseModel):
    """Upstream endpoints and model parameters (keys live on Settings)."""

    openai_base_url: str = "https://api.openai.com/v1"
    script_model: str = "gpt-4o-mini"
    script_max_tokens: int = 500
    ollama_base_url: str = "http://localhost:11434"

    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    voice_model: str = "eleven_multilingual_v2"
    voice_stability: float = 0.5
    voice_similarity_boost: float = 0.75

    pexels_base_url: str = "https://api.pexels.com"
    footage_per_page: int = 5
    footage_orientation: str = "portrait"

    shotstack_base_url: str = "https://api.shotstack.io/stage"

    request_timeout: float = 120.0
    connect_timeout: float = 30.0


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    assembly_strategy: AssemblyStrategy = AssemblyStrategy.LOCAL
    footage_selection: FootageSelection = FootageSelection.RANDOM
    footage_query_source: FootageQuerySource = FootageQuerySource.TEMPLATE
    render_poll_interval: float = 2.0
    render_poll_max: int = 60
    render_max_clips: int = 3
    render_clip_length: int = 10
    output_width: int = 1080
    output_height: int = 1920
    default_audio_duration: float = 30.0


class StorageConfig(BaseModel):
    """Artifact storage and retention configuration."""

    tmp_dir: Path = Path("temp")
    retention_max_age_seconds: int = 3600
    retention_interval_seconds: int = 1800

    @field_validator("tmp_dir", mode="before")
    @classmethod
    def convert_tmp_dir_to_path(cls, v):
        """Convert string to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 3001
    # Externally reachable base URL; lets the remote renderer fetch job audio
    public_base_url: Optional[str] = None


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Environment variables (prefix: TIKTAP_, delimiter: __)
    2. YAML file (config.yaml)
    3. Field defaults

    Provider keys are also read from their conventional unprefixed names
    (OPENAI_API_KEY, ELEVENLABS_API_KEY, PEXELS_API_KEY, SHOTSTACK_API_KEY).
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="TIKTAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TIKTAP_OPENAI_API_KEY", "OPENAI_API_KEY", "openai_api_key"),
    )
    elevenlabs_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TIKTAP_ELEVENLABS_API_KEY", "ELEVENLABS_API_KEY", "elevenlabs_api_key"),
    )
    pexels_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TIKTAP_PEXELS_API_KEY", "PEXELS_API_KEY", "pexels_api_key"),
    )
    shotstack_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TIKTAP_SHOTSTACK_API_KEY", "SHOTSTACK_API_KEY", "shotstack_api_key"),
    )

    providers: ProvidersConfig = ProvidersConfig()
    pipeline: PipelineConfig = PipelineConfig()
    storage: StorageConfig = StorageConfig()
    server: ServerConfig = ServerConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """Customize settings sources to include YAML configuration.

        Priority order (highest to lowest):
        1. Environment variables
        2. YAML file
        3. Init settings (programmatic defaults)
        """
        return (
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            init_settings,
        )


def secret_value(secret: Optional[SecretStr]) -> str:
    """Unwrap an optional secret, returning an empty string when unset."""
    return secret.get_secret_value() if secret is not None else ""


# Singleton instance
settings = Settings()
