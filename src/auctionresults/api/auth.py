"""
Bearer token authentication for state-changing API endpoints.

Clients send ``Authorization: Bearer <secret>``, where the secret is
``AUCTIONRESULTS_API_SECRET``. Checks are enforced when
``AUCTIONRESULTS_ENV=production``.
"""

import hmac
from functools import wraps
from typing import Optional

from flask import jsonify, request

from auctionresults.config import get_config
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def validate_bearer_token(auth_header: Optional[str], secret: Optional[str]) -> bool:
    """Check an Authorization header against the configured secret.

    Example:
        >>> validate_bearer_token("Bearer s3cret", "s3cret")
        True
        >>> validate_bearer_token("s3cret", "s3cret")
        False
    """
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return False

    if not secret:
        logger.error("AUCTIONRESULTS_API_SECRET is not configured")
        return False

    token = auth_header[len(BEARER_PREFIX):]
    return hmac.compare_digest(token.encode(), secret.encode())


def require_api_key(view):
    """Reject requests without a valid bearer token when auth is enforced."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        api_config = get_config().api
        if api_config.require_auth and not validate_bearer_token(
            request.headers.get("Authorization"), api_config.api_secret
        ):
            logger.warning("Unauthorized request to %s", request.path)
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper
