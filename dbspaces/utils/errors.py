"""Error taxonomy for dbspace inventory and lifecycle operations."""

import logging
from functools import wraps

logger = logging.getLogger(__name__)


class DbspaceError(Exception):
    """Base class for dbspace management errors."""
    def __init__(self, message, code='InternalError'):
        super().__init__(message)
        self.message = message
        self.code = code


class NotFound(DbspaceError):
    """Named dbspace, chunk or path does not exist."""
    def __init__(self, message):
        super().__init__(message, "NotFound")


class AlreadyExists(DbspaceError):
    """Duplicate dbspace name or storage path."""
    def __init__(self, message):
        super().__init__(message, "AlreadyExists")


class InvalidName(DbspaceError):
    """A name or path violates the naming convention."""
    def __init__(self, message):
        super().__init__(message, "InvalidName")


class PermissionDenied(DbspaceError):
    """Ownership or permission bits do not match what is required."""
    def __init__(self, message):
        super().__init__(message, "PermissionDenied")


class SizeConstraintViolation(DbspaceError):
    """Chunk or page size is not acceptable."""
    def __init__(self, message):
        super().__init__(message, "SizeConstraintViolation")


class ExternalCommandFailure(DbspaceError):
    """The privileged space command returned a failure status."""
    def __init__(self, command, returncode=None):
        detail = f" (exit code {returncode})" if returncode is not None else ""
        super().__init__(f"Command failed{detail}: {command}", "ExternalCommandFailure")
        self.command = command
        self.returncode = returncode


class EngineUnreachable(DbspaceError):
    """No parseable diagnostic output could be obtained from the engine."""
    def __init__(self, message):
        super().__init__(message, "EngineUnreachable")


class MalformedReport(DbspaceError):
    """A diagnostic report row does not fit the expected layout."""
    def __init__(self, message):
        super().__init__(message, "MalformedReport")


class UnsupportedVersion(DbspaceError):
    """Engine major version has no known report layout."""
    def __init__(self, version):
        super().__init__(f"No report layout is known for engine version {version}",
                         "UnsupportedVersion")
        self.version = version


class InvalidChunkOrder(DbspaceError):
    """Relative chunk order cannot be used for the requested operation."""
    def __init__(self, message):
        super().__init__(message, "InvalidChunkOrder")


class ChunkOrderError(DbspaceError):
    """The next-chunk chain of one dbspace could not be resolved."""
    def __init__(self, dbspace_number, message):
        super().__init__(f"DBspace {dbspace_number}: {message}", "ChunkOrderError")
        self.dbspace_number = dbspace_number


class InvalidOption(DbspaceError):
    """Conflicting or malformed request options."""
    def __init__(self, message):
        super().__init__(message, "InvalidOption")


class StepFailure(DbspaceError):
    """A filesystem mutation failed while running a lifecycle step."""
    def __init__(self, action, error):
        super().__init__(f"{action} failed: {error}", "StepFailure")
        self.action = action
        self.error = error


def handle_cli_errors(f):
    """Decorator to turn dbspace errors into a CLI exit status."""
    @wraps(f)
    def wrapped(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except DbspaceError as e:
            logger.error(f"{e.code} in {f.__name__}: {e.message}")
            return 1
        except Exception as e:
            logger.error(f"Unexpected error in {f.__name__}: {str(e)}")
            return 1
    return wrapped
