"""Core custom exceptions for the application."""


class ServiceError(Exception):
    """Base exception for failures raised by the template services."""


class TemplateNotFound(ServiceError):
    """Raised when a session is asked to select a template it never listed."""


class SessionNotFound(ServiceError):
    """Raised when no session exists for the given identifier."""
