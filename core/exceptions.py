"""
Centralized exception hierarchy for domain-specific errors.

This module provides custom exception classes that represent specific
error conditions in the application. None of them is fatal to the
process: trip tracking degrades data freshness instead of aborting.
"""


class DriveTimerError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DriveTimerError):
    """Exception raised when data validation fails."""


class ExternalServiceError(DriveTimerError):
    """Exception raised when service calls fail."""


class RateLimitError(ExternalServiceError):
    """Exception raised when rate limits are exceeded."""


class ResourceNotFoundError(DriveTimerError):
    """Exception raised when a requested resource is not found."""


class DestinationNotFoundError(ResourceNotFoundError):
    """Geocoding returned no candidate for the requested destination."""


class InvalidArrivalSpecError(ValidationError):
    """The requested arrival time could not be interpreted."""


class PositionUnavailableError(DriveTimerError):
    """The position provider could not produce a fix."""


class PermissionDeniedError(PositionUnavailableError):
    """The device refused access to its location."""


class RouteUnresolvedError(ExternalServiceError):
    """The routing provider returned no usable route."""


DriveTimerException = DriveTimerError
ValidationException = ValidationError
ExternalServiceException = ExternalServiceError
RateLimitException = RateLimitError
ResourceNotFoundException = ResourceNotFoundError
DestinationNotFoundException = DestinationNotFoundError
InvalidArrivalSpecException = InvalidArrivalSpecError
PositionUnavailableException = PositionUnavailableError
RouteUnresolvedException = RouteUnresolvedError
