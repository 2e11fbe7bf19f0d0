import os
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from quiesce.core.config import Config


def get_configfile() -> Path | None:
    raw = os.getenv("QUIESCE_CONFIG")
    if raw is None:
        return None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Point QUIESCE_CONFIG at an existing YAML file\n"
            "  - Or unset it and configure through QUIESCE_* environment variables."
        )

    return file


class QuiesceSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUIESCE_",
        extra="ignore"
    )

    host: Annotated[
        str,
        Field(
            description=(
                "Bind address of the listener.\n"
                "Examples:\n"
                " 0.0.0.0   (all interfaces)\n"
                " 127.0.0.1 (local only)"
            ),
            default="127.0.0.1"
        )
    ]

    port: Annotated[
        int,
        Field(
            description=(
                "TCP port of the listener. 0 lets the OS pick a free port,\n"
                "which changes on every restart."
            ),
            default=8000
        )
    ]

    backlog: Annotated[
        int,
        Field(
            description="Maximum number of pending TCP connections.",
            default=128
        )
    ]

    max_buffer_size: Annotated[
        int,
        Field(
            description=(
                "Maximum allowed buffer size for incoming data (in bytes).\n"
                "Connections exceeding it are closed."
            ),
            default=4 * 1024 * 1024
        )
    ]

    log_level: Annotated[
        str,
        Field(
            description="Logging verbosity: DEBUG, INFO, WARNING, ERROR or CRITICAL.",
            default="INFO"
        )
    ]

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 <= v <= 65535:
            raise ValueError(f"port must be within 0..65535, got {v}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        if isinstance(v, str):
            v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {v}")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Priority: init kwargs > QUIESCE_* env > YAML file
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)

        configfile = get_configfile()
        if configfile is not None:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=configfile),)

        return sources

    def to_config(self) -> Config:
        return Config(
            host=self.host,
            port=self.port,
            backlog=self.backlog,
            max_buffer_size=self.max_buffer_size,
        )
