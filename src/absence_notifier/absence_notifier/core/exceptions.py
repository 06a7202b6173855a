class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidPhoneError(ValidationError):
    """Raised when a contact number cannot be turned into a deliverable address."""


class ChannelError(DomainError):
    """Raised by a messaging gateway when a send attempt fails."""


class ConfigurationError(DomainError):
    """Raised when a required setting is missing or malformed."""
