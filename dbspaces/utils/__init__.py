"""Shared utilities."""

from .errors import (
    DbspaceError,
    NotFound,
    AlreadyExists,
    InvalidName,
    PermissionDenied,
    SizeConstraintViolation,
    ExternalCommandFailure,
    EngineUnreachable,
    MalformedReport,
    UnsupportedVersion,
    InvalidChunkOrder,
    ChunkOrderError,
    InvalidOption,
    StepFailure,
    handle_cli_errors,
)

__all__ = [
    "DbspaceError",
    "NotFound",
    "AlreadyExists",
    "InvalidName",
    "PermissionDenied",
    "SizeConstraintViolation",
    "ExternalCommandFailure",
    "EngineUnreachable",
    "MalformedReport",
    "UnsupportedVersion",
    "InvalidChunkOrder",
    "ChunkOrderError",
    "InvalidOption",
    "StepFailure",
    "handle_cli_errors",
]
