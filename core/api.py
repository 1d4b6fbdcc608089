"""API utilities for FastAPI route handling."""

import functools
import logging
from collections.abc import Callable

from fastapi import HTTPException, status

from core.exceptions import (
    DriveTimerException,
    ExternalServiceException,
    PositionUnavailableException,
    RateLimitException,
    ResourceNotFoundException,
    ValidationException,
)


def api_route(logger: logging.Logger):
    """
    Decorator for FastAPI endpoints that maps domain errors to HTTP errors.

    - HTTPException passes through untouched
    - ValidationException -> 400, ResourceNotFoundException -> 404
    - RateLimitException -> 429, ExternalServiceException -> 502
    - PositionUnavailableException -> 503
    - anything else is logged and becomes a 500

    Usage:
        @router.get("/api/example")
        @api_route(logger)
        async def my_endpoint():
            return result
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except ValidationException as e:
                logger.warning("Validation error in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=e.message,
                ) from e
            except ResourceNotFoundException as e:
                logger.info("Resource not found in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=e.message,
                ) from e
            except PositionUnavailableException as e:
                logger.info("Position unavailable in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail=e.message,
                ) from e
            except RateLimitException as e:
                logger.warning(
                    "Rate limit exceeded in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=e.message,
                ) from e
            except ExternalServiceException as e:
                logger.exception(
                    "External service error in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail=f"External service error: {e.message}",
                ) from e
            except DriveTimerException as e:
                logger.exception(
                    "Application error in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=e.message,
                ) from e
            except Exception as e:
                logger.exception("Unexpected error in %s", func.__name__)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=str(e),
                ) from e

        return wrapper

    return decorator
