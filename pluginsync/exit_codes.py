"""
Standard exit codes and error types for pluginsync.

Following Unix/POSIX conventions for command-line tools. Every error the
services raise carries the exit code the CLI should terminate with.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # Hosting API call failed
CONFIG_ERROR = 66        # Configuration or credentials error
PERMISSION_ERROR = 67    # Insufficient permissions
POLICY_ERROR = 72        # Refused by a publishing policy guard
CONFLICT_ERROR = 73      # Ref update kept conflicting
PARTIAL_SUCCESS = 71     # Some repositories succeeded, some failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for exceptions that are not CommandErrors
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': API_ERROR,
    'TimeoutError': API_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    return EXCEPTION_EXIT_CODES.get(exc.__class__.__name__, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class PluginsyncError(CommandError):
    """Base class for failures scoped to a single repository."""
    error_type = "error"


class ConfigurationError(PluginsyncError):
    """Missing credentials, inaccessible repository or no sync origin."""
    error_type = "config_error"

    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class ArgumentError(PluginsyncError, ValueError):
    """Raised when a repository name does not follow the plugin convention."""
    error_type = "argument_error"

    def __init__(self, message: str):
        super().__init__(message, USAGE_ERROR)


class PolicyViolation(PluginsyncError):
    """Raised before any network call when a publish target is forbidden."""
    error_type = "policy_violation"

    def __init__(self, message: str):
        super().__init__(message, POLICY_ERROR)


class HostApiError(PluginsyncError):
    """Raised when the hosting API call fails."""
    error_type = "api_error"

    def __init__(self, message: str, status: Optional[int] = None, exit_code: int = API_ERROR):
        super().__init__(message, exit_code)
        self.status = status


class PermissionDenied(HostApiError):
    """The credentials lack the scope needed for the request (HTTP 403)."""
    error_type = "permission_denied"

    def __init__(self, message: str, status: Optional[int] = 403):
        super().__init__(message, status, PERMISSION_ERROR)


class RefUpdateConflict(HostApiError):
    """A ref update was rejected because the remote pointer moved."""
    error_type = "ref_conflict"

    def __init__(self, message: str, status: Optional[int] = 422):
        super().__init__(message, status, CONFLICT_ERROR)


class SyncConflictError(PluginsyncError):
    """The single retry after a ref update conflict failed as well."""
    error_type = "sync_conflict"

    def __init__(self, message: str):
        super().__init__(message, CONFLICT_ERROR)
