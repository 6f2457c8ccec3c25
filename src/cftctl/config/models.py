"""Sections of cftctl.toml.

Every field has a default, so a project without any config file works
and a config file only lists what it changes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ProjectConfig(BaseModel):
    """[project] section."""

    model_config = {"frozen": True}

    template_dir: str = "cloudformation/templates"
    extensions: list[str] = Field(default_factory=lambda: [".yaml", ".yml", ".json"])


class CheckConfig(BaseModel):
    """[check] section."""

    model_config = {"frozen": True}

    duplicate_providers: Literal["error", "warning", "ignore"] = "warning"


class PlanConfig(BaseModel):
    """[plan] section."""

    model_config = {"frozen": True}

    with_dependencies: bool = False
