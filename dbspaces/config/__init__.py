"""Configuration for the dbspace manager."""

from .dbspace_defaults import DbspaceDefaults, load_dbspace_defaults, parse_defaults

__all__ = ["DbspaceDefaults", "load_dbspace_defaults", "parse_defaults"]
