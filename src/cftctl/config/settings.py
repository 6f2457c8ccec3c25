"""CftSettings: one frozen object built from flags, environment and cftctl.toml.

Later sources fill only what earlier ones leave unset:

  command-line flags  >  ``CFTCTL_*`` variables  >  cftctl.toml  >  model defaults

The TOML file is found by walking up from the project root (or the
working directory), unless ``--config`` or ``$CFTCTL_CONFIG`` names one.
"""

from __future__ import annotations

import os
import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from cftctl.config.models import CheckConfig, PlanConfig, ProjectConfig

CONFIG_FILENAME = "cftctl.toml"
CONFIG_ENV_VAR = "CFTCTL_CONFIG"

# The file the settings under construction read from; set by from_cli().
_config_file: ContextVar[Path | None] = ContextVar("cftctl_config_file", default=None)


def find_config(start: Path) -> Path | None:
    """Locate cftctl.toml in *start* or the nearest parent holding one.

    ``$CFTCTL_CONFIG`` short-circuits the search; if it names a missing
    file, no config is used at all.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None
    here = start.resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class CftSettings(BaseSettings):
    """Settings for one cftctl invocation.

    Attributes:
        root: Project directory. Template paths resolve against it.
        config_path: The cftctl.toml in use, if any.
        environment: Target environment. Templates restricted to other
            environments are left out of the project.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="CFTCTL_",
        env_nested_delimiter="__",
    )

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None
    environment: str | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)
    plan: PlanConfig = Field(default_factory=PlanConfig)

    @property
    def template_root(self) -> Path:
        return self.root / self.project.template_dir

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        config_file = _config_file.get()
        if config_file is None:
            return init_settings, env_settings
        return init_settings, env_settings, TomlConfigSettingsSource(settings_cls, config_file)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **flags: Any,
    ) -> CftSettings:
        """Build settings for a command line.

        Without *root*, the project root is the directory of the config
        file found, else the working directory. Flags given as None are
        treated as absent so the environment and TOML still apply.

        Raises:
            click.ClickException: If the config file is not valid TOML.
        """
        if config_path:
            config_file: Path | None = Path(config_path)
            if not config_file.is_file():
                config_file = None
        else:
            config_file = find_config(root or Path.cwd())

        if root is None:
            root = config_file.parent if config_file else Path.cwd()

        given = {name: value for name, value in flags.items() if value is not None}
        token = _config_file.set(config_file)
        try:
            return cls(root=root, config_path=config_file, **given)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {config_file}: {exc}"
            raise click.ClickException(msg) from exc
        finally:
            _config_file.reset(token)
