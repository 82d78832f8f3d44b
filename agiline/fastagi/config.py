"""Configuration management using pydantic-settings with YAML support."""

from pathlib import Path
from typing import Self

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TLSSettings(BaseModel):
    """TLS settings for the FastAGI listener."""

    enabled: bool = False
    certfile: Path | None = None
    keyfile: Path | None = None

    @model_validator(mode="after")
    def check_certificate(self) -> Self:
        if self.enabled and self.certfile is None:
            raise ValueError("tls.certfile is required when TLS is enabled")
        return self


class ServerSettings(BaseModel):
    """FastAGI listener settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=4573, ge=0, le=65535)
    tls: TLSSettings = TLSSettings()
    handler: str = "agiline.fastagi.apps.hello:run"


class AGISettings(BaseModel):
    """AGI protocol settings."""

    # Asterisk versions differ in how many variables they send
    min_env_vars: int = Field(default=18, ge=0)


class Settings(BaseSettings):
    """Application settings loaded from YAML config file."""

    model_config = SettingsConfigDict(
        env_prefix="AGILINE_",
        env_nested_delimiter="__",
    )

    server: ServerSettings = ServerSettings()
    agi: AGISettings = AGISettings()
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, path: Path) -> Self:
        """Load settings from a YAML file."""
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            return cls.model_validate(data)
        return cls()

    def to_yaml(self, path: Path) -> None:
        """Save settings to a YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


# Default config path
CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "agiline-fastagi.yaml"


def get_settings(config_path: Path = CONFIG_PATH) -> Settings:
    """Load settings from config file, creating default if not exists."""
    settings = Settings.from_yaml(config_path)
    if not config_path.exists():
        settings.to_yaml(config_path)
    return settings
