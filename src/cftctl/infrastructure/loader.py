"""Template file discovery and CloudFormation-aware YAML loading.

CloudFormation short-form tags (``!Ref``, ``!ImportValue``, ``!Sub`` ...)
are expanded to their long form while parsing, so the domain layer only
ever sees plain ``{"Fn::ImportValue": ...}`` dicts. JSON templates go
through the same parser.
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.constructor import SafeConstructor
from ruamel.yaml.error import YAMLError
from ruamel.yaml.nodes import MappingNode, Node, SequenceNode

from cftctl.domain.template import TemplateInfo, parse_template

# Short-form tag -> long-form key.
SHORT_FORMS: dict[str, str] = {
    "!Ref": "Ref",
    "!Condition": "Condition",
    "!GetAtt": "Fn::GetAtt",
    **{
        f"!{name}": f"Fn::{name}"
        for name in (
            "And",
            "Base64",
            "Cidr",
            "Equals",
            "FindInMap",
            "GetAZs",
            "If",
            "ImportValue",
            "Join",
            "Not",
            "Or",
            "Select",
            "Split",
            "Sub",
            "Transform",
        )
    },
}

# Directories to skip when discovering template files.
_SKIP_DIRS = frozenset({".git", ".aws-sam", "node_modules"})


class TemplateLoadError(ValueError):
    """A template file could not be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


def _construct_intrinsic(key: str, constructor: SafeConstructor, node: Node) -> dict[str, Any]:
    value: Any
    if isinstance(node, MappingNode):
        value = constructor.construct_mapping(node, deep=True)
    elif isinstance(node, SequenceNode):
        value = constructor.construct_sequence(node, deep=True)
    else:
        value = constructor.construct_scalar(node)
        if key == "Fn::GetAtt":
            value = str(value).split(".", 1)
    return {key: value}


class _IntrinsicConstructor(SafeConstructor):
    """SafeConstructor that expands CloudFormation short-form tags."""


for _tag, _key in SHORT_FORMS.items():
    _IntrinsicConstructor.add_constructor(_tag, functools.partial(_construct_intrinsic, _key))


def _new_yaml() -> YAML:
    """Create a fresh safe parser with the intrinsic constructor installed."""
    y = YAML(typ="safe", pure=True)
    y.Constructor = _IntrinsicConstructor
    return y


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def load_document(path: Path) -> dict[str, Any]:
    """Parse a YAML or JSON template into plain dicts and lists.

    Raises:
        TemplateLoadError: If the file is unreadable, malformed, or not a mapping.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        raise TemplateLoadError(path, f"cannot read file ({exc})") from exc
    try:
        data = _new_yaml().load(raw)
    except YAMLError as exc:
        raise TemplateLoadError(path, f"invalid template ({exc})") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TemplateLoadError(path, "top level is not a mapping")
    return data


def load_template(path: Path, root: Path) -> TemplateInfo:
    """Load *path* and extract what it provides, requires and declares."""
    return parse_template(template_id_for(path, root), path, load_document(path))


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def template_id_for(path: Path, root: Path) -> str:
    """Identifier of *path*: its posix path relative to *root*."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def find_template_files(root: Path, extensions: list[str] | tuple[str, ...]) -> list[Path]:
    """Discover template files under *root*, sorted by path.

    Skips hidden tool directories (``.git``, ``.aws-sam``, ``node_modules``).
    """
    if not root.is_dir():
        return []
    wanted = {ext.lower() for ext in extensions}
    results: list[Path] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if any(part in _SKIP_DIRS for part in path.relative_to(root).parts):
            continue
        if path.suffix.lower() in wanted:
            results.append(path)
    return sorted(results)
