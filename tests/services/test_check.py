"""Tests for CheckService — project validation."""

from __future__ import annotations

from pathlib import Path

from cftctl.infrastructure.project import Project
from cftctl.services.check import (
    CAT_CYCLE,
    CAT_DUPLICATE,
    CAT_LOAD,
    CAT_UNDEFINED,
    CAT_UNKNOWN,
    CheckService,
)
from tests.conftest import write_template


def _categories(result) -> list[str]:
    return [i["category"] for i in result.data["issues"]]


class TestCheckClean:
    def test_sample_project_is_clean(self, project: Project) -> None:
        result = CheckService(project).check()
        assert result.ok
        assert result.data["count"] == 0
        assert result.data["errors"] == 0
        assert result.data["templates"] == 5


class TestCheckIssues:
    def test_undefined_variable(self, project_root: Path, make_project) -> None:
        write_template(project_root, "app/db.yaml", "X: !ImportValue db-subnets\n")
        result = CheckService(make_project()).check()
        assert result.ok
        issues = [i for i in result.data["issues"] if i["category"] == CAT_UNDEFINED]
        assert len(issues) == 1
        assert issues[0]["variable"] == "db-subnets"
        assert issues[0]["required_by"] == ["app/db.yaml"]
        assert issues[0]["severity"] == "error"

    def test_duplicate_provider_warning(self, project_root: Path, make_project) -> None:
        write_template(
            project_root,
            "vpc/other.yaml",
            "Outputs:\n  V:\n    Export:\n      Name: vpc-id\n",
        )
        result = CheckService(make_project()).check()
        issues = [i for i in result.data["issues"] if i["category"] == CAT_DUPLICATE]
        assert len(issues) == 1
        assert issues[0]["severity"] == "warning"
        assert issues[0]["provided_by"] == ["vpc/base.yaml", "vpc/other.yaml"]

    def test_duplicate_provider_ignored(self, project_root: Path, make_project) -> None:
        write_template(
            project_root,
            "vpc/other.yaml",
            "Outputs:\n  V:\n    Export:\n      Name: vpc-id\n",
        )
        (project_root / "cftctl.toml").write_text('[check]\nduplicate_providers = "ignore"\n')
        result = CheckService(make_project()).check()
        assert CAT_DUPLICATE not in _categories(result)

    def test_unknown_dependency(self, project_root: Path, make_project) -> None:
        write_template(
            project_root,
            "app/api.yaml",
            "Metadata:\n  DependsOn:\n    Templates: [missing/thing.yaml]\n",
        )
        result = CheckService(make_project()).check()
        issues = [i for i in result.data["issues"] if i["category"] == CAT_UNKNOWN]
        assert issues[0]["dependency"] == "missing/thing.yaml"

    def test_cycle(self, project_root: Path, make_project) -> None:
        write_template(
            project_root,
            "loop/a.yaml",
            "Metadata:\n  DependsOn:\n    Templates: [loop/b.yaml]\n",
        )
        write_template(
            project_root,
            "loop/b.yaml",
            "Metadata:\n  DependsOn:\n    Templates: [loop/a.yaml]\n",
        )
        result = CheckService(make_project()).check()
        cycles = [i for i in result.data["issues"] if i["category"] == CAT_CYCLE]
        assert len(cycles) == 1
        assert set(cycles[0]["cycle"]) == {"loop/a.yaml", "loop/b.yaml"}

    def test_load_error(self, project_root: Path, make_project) -> None:
        write_template(project_root, "bad.yaml", "a: [unclosed\n")
        result = CheckService(make_project()).check()
        assert CAT_LOAD in _categories(result)

    def test_errors_only_hides_warnings(self, project_root: Path, make_project) -> None:
        write_template(
            project_root,
            "vpc/other.yaml",
            "Outputs:\n  V:\n    Export:\n      Name: vpc-id\n",
        )
        result = CheckService(make_project()).check(min_severity="error")
        assert result.data["count"] == 0
