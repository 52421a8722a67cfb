"""Inventory and lifecycle management of Informix dbspaces and chunks."""

__version__ = "0.1.0"
