"""YAML config source with conf.d directory support.

Extends pydantic-settings' YamlConfigSettingsSource so each settings domain
can be loaded from:

- conf/<name>.yaml        (base configuration)
- conf/<name>.d/*.yaml    (overrides, merged alphabetically)

The base directory defaults to ``conf`` and can be moved per domain with an
environment variable (e.g. ``REDIS_CONFIG_DIR=/etc/flag-engine``).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic_settings import YamlConfigSettingsSource

if TYPE_CHECKING:
    from pydantic_settings import BaseSettings


class ConfDYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML settings source that also merges a conf.d directory."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: str = "app.yaml",
        confd_dir: str | None = "app.d",
        config_dir_env: str = "CONFIG_DIR",
        base_dir: str = "conf",
        yaml_file_encoding: str | None = "utf-8",
    ) -> None:
        """Initialize the conf.d YAML source.

        Args:
            settings_cls: The settings class being configured.
            yaml_file: Main YAML file name (e.g., "app.yaml").
            confd_dir: conf.d subdirectory name (e.g., "app.d"), or None to disable.
            config_dir_env: Environment variable that overrides the base directory.
            base_dir: Default base directory for config files.
            yaml_file_encoding: File encoding for YAML files.
        """
        config_base = Path(os.getenv(config_dir_env, base_dir))

        yaml_files: list[Path] = []
        main_file = config_base / yaml_file
        if main_file.exists():
            yaml_files.append(main_file)

        if confd_dir:
            confd_path = config_base / confd_dir
            if confd_path.is_dir():
                yaml_files.extend(sorted(confd_path.glob("*.yaml")))
                yaml_files.extend(sorted(confd_path.glob("*.yml")))

        self._yaml_files = yaml_files

        super().__init__(
            settings_cls=settings_cls,
            yaml_file=yaml_files or None,
            yaml_file_encoding=yaml_file_encoding,
        )

    def __repr__(self) -> str:
        files_str = ", ".join(str(f) for f in self._yaml_files)
        return f"{self.__class__.__name__}(yaml_files=[{files_str}])"


def create_yaml_source(
    settings_cls: type[BaseSettings],
    name: str,
) -> ConfDYamlConfigSettingsSource:
    """Create the YAML source for one settings domain.

    Loads ``conf/{name}.yaml`` and ``conf/{name}.d/*.yaml``. The directory can
    be overridden with ``{NAME}_CONFIG_DIR``.

    Args:
        settings_cls: The settings class being configured.
        name: Domain name (app, db, redis, logging, flags).

    Returns:
        Configured YAML settings source.
    """
    return ConfDYamlConfigSettingsSource(
        settings_cls,
        yaml_file=f"{name}.yaml",
        confd_dir=f"{name}.d",
        config_dir_env=f"{name.upper()}_CONFIG_DIR",
    )


def customise_sources(
    settings_cls: type[BaseSettings],
    name: str,
    init_settings,
    env_settings,
    dotenv_settings,
    file_secret_settings,
) -> tuple:
    """Source precedence shared by every settings class: init > env > yaml > dotenv > secrets."""
    return (
        init_settings,
        env_settings,
        create_yaml_source(settings_cls, name),
        dotenv_settings,
        file_secret_settings,
    )
