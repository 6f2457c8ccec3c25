"""Shared pytest fixtures and test helpers for cftctl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from cftctl.config.settings import CftSettings
from cftctl.infrastructure.project import Project
from cftctl.services.telemetry import set_telemetry

TEMPLATE_DIR = "cloudformation/templates"

# vpc/base ──vpc-id──────────▶ network/vpc ──link──▶ app/web
#          ──private-subnets─▶ app/web, app/worker
SAMPLE_TEMPLATES: dict[str, str] = {
    "vpc/base.yaml": """\
AWSTemplateFormatVersion: "2010-09-09"
Description: Base VPC
Resources:
  Vpc:
    Type: AWS::EC2::VPC
    Properties:
      CidrBlock: !Ref CidrBlock
Outputs:
  VpcId:
    Value: !Ref Vpc
    Export:
      Name: vpc-id
  PrivateSubnets:
    Value: !Join [",", [!Ref SubnetA, !Ref SubnetB]]
    Export:
      Name: private-subnets
""",
    "network/vpc.yaml": """\
Description: Routing for the base VPC
Resources:
  Nat:
    Type: AWS::EC2::NatGateway
    Properties:
      VpcId: !ImportValue vpc-id
Outputs:
  NatGateway:
    Value: !Ref Nat
    Export:
      Name: !Sub "${AWS::StackName}-nat"
""",
    "app/web.yaml": """\
Metadata:
  DependsOn:
    Templates:
      - network/vpc.yaml
  Environments: [staging, production]
Resources:
  Service:
    Type: AWS::ECS::Service
    Properties:
      Subnets:
        Fn::Split:
          - ","
          - Fn::ImportValue: private-subnets
""",
    "app/worker.yaml": """\
Metadata:
  Environments: [production]
Resources:
  Service:
    Type: AWS::ECS::Service
    Properties:
      Subnets: !Split [",", !ImportValue private-subnets]
""",
    "tools/bastion.json": """\
{
  "Description": "Standalone bastion host",
  "Resources": {
    "Host": {"Type": "AWS::EC2::Instance"}
  }
}
""",
}


def write_template(root: Path, template_id: str, content: str) -> Path:
    """Write *content* to ``<root>/cloudformation/templates/<template_id>``."""
    path = root / TEMPLATE_DIR / template_id
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary project directory holding the sample templates.

    This is the single source of truth for the sample layout. All
    project fixtures build on it.
    """
    monkeypatch.delenv("CFTCTL_CONFIG", raising=False)
    monkeypatch.delenv("CFTCTL_ENVIRONMENT", raising=False)
    for template_id, content in SAMPLE_TEMPLATES.items():
        write_template(tmp_path, template_id, content)
    return tmp_path


@pytest.fixture
def project(project_root: Path) -> Project:
    """Project over the sample templates, no environment filter."""
    return Project(CftSettings.from_cli(root=project_root))


@pytest.fixture
def make_project(project_root: Path):
    """Factory for projects over the sample root with extra settings."""

    def _make(**flags: object) -> Project:
        return Project(CftSettings.from_cli(root=project_root, **flags))

    return _make


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the sample project root so the CLI finds it.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture(autouse=True)
def _reset_verbose_state() -> Generator[None]:
    """Undo global state a ``-v`` invocation leaves behind."""
    yield
    set_telemetry(False)
    logging.getLogger().handlers.clear()
