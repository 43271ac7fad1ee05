"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class DalleCliError(Exception):
    """Base exception for all application-specific errors."""


class EmptyPromptError(DalleCliError):
    """Raised when a prompt is empty or contains only whitespace."""


class BusyError(DalleCliError):
    """
    Raised when a prompt is submitted to a session that is still requesting
    or downloading images.
    """


class SessionClosedError(DalleCliError):
    """Raised when a prompt is submitted to a session whose surface is gone."""


class RemoteCallError(DalleCliError):
    """Raised when the image-generation service reports an error."""


class DownloadFailure(DalleCliError):
    """Raised when an image could not be fetched to its local path."""


class AlreadyExistsError(DalleCliError):
    """Raised when a session surface with the derived name already exists."""


class ConfigurationError(DalleCliError):
    """Raised for issues related to configuration loading or validation."""
