"""Configuration: cftctl.toml lookup, settings merge, logging setup."""
