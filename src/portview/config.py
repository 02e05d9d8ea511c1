"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (PORTVIEW__REGISTRY__DB_PATH=/opt/local/...)
  2. portview.yaml          (searched in cwd, then the platform config dir)
  3. Hardcoded defaults

The config file is optional — all fields have sensible defaults for a stock
MacPorts installation under /opt/local.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("portview")
_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("portview")
_DEFAULT_USER_INDEX = str(Path(_DEFAULT_DATA_DIR) / "PortIndex")

_MACPORTS_PREFIX = "/opt/local"
_DEFAULT_SYSTEM_INDEX = (
    f"{_MACPORTS_PREFIX}/var/macports/sources/rsync.macports.org"
    "/macports/release/tarballs/ports/PortIndex"
)
_DEFAULT_REGISTRY_DB = f"{_MACPORTS_PREFIX}/var/macports/registry/registry.db"


def _find_config_file() -> str | None:
    """Return the path of the first portview.yaml found, or None."""
    candidates = [
        Path("portview.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "portview.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class IndexSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    system_path: str = _DEFAULT_SYSTEM_INDEX
    # Parsed after the system index, so its entries win.
    user_path: str = _DEFAULT_USER_INDEX


class RegistrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: Literal["sqlite", "dump"] = "sqlite"
    db_path: str = _DEFAULT_REGISTRY_DB
    dump_path: str | None = None
    installed_states: list[str] = ["installed"]
    imaged_states: list[str] = ["imaged"]


class OutlineSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    protected_packages: list[str] = ["MacPorts"]
    sort_column: Literal["name", "version", "description"] = "name"
    sort_descending: bool = False


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PORTVIEW__LOGGING__LEVEL=DEBUG
        env_prefix="PORTVIEW__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    index: IndexSettings = IndexSettings()
    registry: RegistrySettings = RegistrySettings()
    outline: OutlineSettings = OutlineSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
        )

    @property
    def protected_names(self) -> frozenset[str]:
        return frozenset(name.casefold() for name in self.outline.protected_packages)
