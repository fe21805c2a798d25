"""
Exception Definitions - Custom exceptions for LCC Assistant
===========================================================

This module defines the custom exceptions used throughout the application.

The responder and the workflow walker never raise for bad user input; they
fall back to a default reply or a no-op state instead. Exceptions are only
raised while definitions are being built or loaded (rule files, workflow
files, configuration) and are caught at the CLI and web boundaries.
"""


class LCCError(Exception):
    """
    Base exception for all LCC Assistant errors.

    Hosts catch this one type at their boundary: the CLI turns it into
    exit code 1 and the web app into an HTTP 400 response.

    Attributes:
        message (str): Human-readable error description
        details (dict): Additional error details for debugging
    """

    def __init__(self, message: str, details: dict = None):
        """
        Args:
            message: Human-readable error description
            details: Context such as the file path or step index
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return formatted error message with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(LCCError):
    """
    Configuration-related errors.

    Raised when there are issues with:
    - Invalid configuration values
    - Configuration parsing errors
    - Unwritable configuration paths
    """
    pass


class RuleError(LCCError):
    """
    Rule definition errors.

    Raised when there are issues with:
    - Patterns that do not compile as regular expressions
    - Rule entries missing a name, pattern or response
    - Rule files that cannot be parsed
    """
    pass


class WorkflowError(LCCError):
    """
    Workflow definition errors.

    Raised when a workflow definition is malformed:
    - Missing id, name or steps
    - Unknown step type
    - Decision options without an integer target
    - Out-of-range targets when strict checking is enabled
    """
    pass


class UIError(LCCError):
    """
    User interface errors.

    Raised when a host cannot start, for example when the terminal UI
    is asked for a workflow id that is not registered.
    """
    pass
