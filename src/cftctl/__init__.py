"""cftctl — dependency-aware planning for CloudFormation templates."""

__version__ = "0.1.0"
