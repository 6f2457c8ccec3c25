"""Template model and reference extraction.

Pure functions over an already-parsed template document (long-form
intrinsics, see :mod:`cftctl.infrastructure.loader`). Consumed by the
project loader to register provides/requires/links.

Recognised shapes::

    Metadata:
      DependsOn:
        Templates: [vpc/base.yaml]
      Environments: [staging, production]
    Outputs:
      VpcId:
        Export:
          Name: vpc-id
    Resources:
      Subnet:
        Properties:
          VpcId: {"Fn::ImportValue": vpc-id}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class TemplateInfo(BaseModel):
    """What one template provides, requires and declares."""

    model_config = {"frozen": True}

    id: str
    path: Path
    description: str | None = None
    exports: list[str] = Field(default_factory=list)
    imports: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    environments: list[str] = Field(default_factory=list)

    def allowed_in(self, environment: str | None) -> bool:
        """Whether this template deploys to *environment* (no list = everywhere)."""
        if environment is None or not self.environments:
            return True
        return environment in self.environments


def _name_of(value: Any) -> str | None:
    """Resolve an export/import name to an opaque string.

    ``Fn::Sub`` strings keep their raw pattern. Anything computed
    another way cannot be named statically and yields None.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and len(value) == 1 and "Fn::Sub" in value:
        sub = value["Fn::Sub"]
        if isinstance(sub, list) and sub:
            sub = sub[0]
        if isinstance(sub, str):
            return sub
    return None


def _section(document: dict[str, Any], key: str) -> dict[str, Any]:
    value = document.get(key)
    return value if isinstance(value, dict) else {}


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value if isinstance(v, (str, int))]
    return []


def extract_exports(document: dict[str, Any]) -> list[str]:
    """Export names declared under ``Outputs.*.Export.Name``."""
    names: list[str] = []
    for output in _section(document, "Outputs").values():
        if not isinstance(output, dict):
            continue
        export = output.get("Export")
        if not isinstance(export, dict):
            continue
        name = _name_of(export.get("Name"))
        if name is not None and name not in names:
            names.append(name)
    return names


def extract_imports(document: Any) -> list[str]:
    """Every ``Fn::ImportValue`` name used anywhere in the document."""
    names: list[str] = []
    stack: list[Any] = [document]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            if "Fn::ImportValue" in node:
                name = _name_of(node["Fn::ImportValue"])
                if name is not None and name not in names:
                    names.append(name)
            stack.extend(reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend(reversed(node))
    return names


def extract_depends_on(document: dict[str, Any]) -> list[str]:
    """Template ids listed under ``Metadata.DependsOn.Templates``."""
    depends = _section(_section(document, "Metadata"), "DependsOn")
    return list(dict.fromkeys(_string_list(depends.get("Templates"))))


def extract_environments(document: dict[str, Any]) -> list[str]:
    """Environments listed under ``Metadata.Environments``."""
    return _string_list(_section(document, "Metadata").get("Environments"))


def parse_template(template_id: str, path: Path, document: dict[str, Any]) -> TemplateInfo:
    """Build a :class:`TemplateInfo` from a parsed template document."""
    description = document.get("Description")
    return TemplateInfo(
        id=template_id,
        path=path,
        description=str(description) if description is not None else None,
        exports=extract_exports(document),
        imports=extract_imports(document),
        depends_on=extract_depends_on(document),
        environments=extract_environments(document),
    )
