"""
Bearer token extraction.

The GraphQL context resolves the caller from the ``Authorization`` header on
every request; these helpers pull the raw token out of that header.
"""

import structlog
from typing import Optional
from fastapi import Request

logger = structlog.get_logger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract a JWT from an ``Authorization`` header value.

    Args:
        authorization: Raw header value (e.g. "Bearer eyJ...")

    Returns:
        Token string, or None if the header is missing, empty or not a
        bearer credential
    """
    if not authorization:
        return None

    parts = authorization.strip().split()
    if len(parts) != 2:
        logger.debug("auth_header_malformed", parts=len(parts))
        return None

    scheme, token = parts
    if scheme.lower() != "bearer":
        logger.debug("auth_invalid_scheme", scheme=scheme)
        return None

    return token


def get_bearer_token(request: Request) -> Optional[str]:
    """
    Get the bearer token of a request, if it carries one.

    Args:
        request: HTTP request

    Returns:
        Token string or None
    """
    return extract_bearer_token(request.headers.get("Authorization"))
