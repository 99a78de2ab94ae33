"""
Shared route dependencies.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from fastapi import Header
from pydantic import ValidationError

from app.core.config import get_settings
from app.schemas.registration import RegistrationCreate
from app.services.errors import InvalidRequest, RequestTimeout

T = TypeVar("T")


async def get_request_timeout(
    x_request_timeout: Optional[float] = Header(default=None, gt=0, le=60),
) -> float:
    """Seconds the caller is willing to wait; X-Request-Timeout header or the configured default."""
    if x_request_timeout is None:
        return get_settings().REQUEST_TIMEOUT_SECONDS
    return x_request_timeout


async def within_timeout(operation: Awaitable[T], timeout: float) -> T:
    """
    Run a unit of work under the caller's deadline. On expiry the work is
    cancelled and get_db rolls the session back. A commit that was already
    in flight may still land; callers re-query to learn the outcome.
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError:
        raise RequestTimeout()


def resolve_registrant_email(body_email: Optional[str], caller_email: Optional[str]) -> str:
    """The email in the request body wins; otherwise the caller's own token identity."""
    if body_email:
        return body_email
    if caller_email:
        try:
            return RegistrationCreate(user_email=caller_email).user_email
        except ValidationError:
            raise InvalidRequest("Token email is not a valid address")
    raise InvalidRequest("userEmail is required")
