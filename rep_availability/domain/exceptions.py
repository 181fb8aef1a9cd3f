"""
Domain-specific exception hierarchy for the availability service.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidDateError(AvailabilityError):
    """Raised when a caller supplies a malformed date parameter."""


class DataFetchError(AvailabilityError):
    """Raised when roster, template, appointment or settings data cannot be fetched."""


class MalformedRecordError(AvailabilityError):
    """Raised when a single stored record cannot be parsed."""


class EventValidationError(AvailabilityError):
    """Raised when an event payload is missing required fields or is inconsistent."""


class EventNotFoundError(AvailabilityError):
    """Raised when an event id does not match any stored event."""


class ConfigError(AvailabilityError):
    """Raised when the configuration file is missing or invalid."""
