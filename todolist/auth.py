"""
JWT bearer token validation.

This module handles the Authentication (AuthN) layer:
- Extracts Bearer tokens from the HTTP Authorization header
- Validates the JWT signature and expiration
- Hands the verified claims to the identity extractor (identity.py)

Authorization decisions are made elsewhere (access.py); a token that passes
here proves who the caller is, not what they may do.

Token structure (JWT payload) as issued by the identity provider:
    {
        "sub": "6f1c...",                     # Stable subject id
        "preferred_username": "alice",        # Display username (Todo owner)
        "tid": "contoso",                     # Tenant id
        "scp": "ToDo.Read ToDo.Write",        # Space-delimited delegated scopes
        "roles": ["Writer"],                  # App roles
        "exp": 1738800000
    }
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import jwt

from todolist.config import settings


class AuthError(Exception):
    """
    Raised when token validation fails for any reason.

    A single exception type covers all authentication failures (missing
    token, invalid signature, expired, wrong audience). The detailed reason
    is logged server-side; clients only see a generic 401.

    Attributes:
        message: Human-readable error description (logged server-side)
        status_code: HTTP status code to return (401 for auth failures)
    """

    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class TokenInfo:
    """
    The authenticated principal extracted from a verified JWT.

    Attributes:
        subject: The "sub" claim
        claims: Read-only view of every claim in the token payload
    """

    subject: str
    claims: Mapping[str, Any] = field(default_factory=dict)


def validate_token(authorization_header: str | None) -> TokenInfo:
    """
    Validate a Bearer token from the Authorization header.

    Args:
        authorization_header: The raw Authorization header value,
                              expected format: "Bearer <jwt-token>"

    Returns:
        TokenInfo with the subject and the verified claims

    Raises:
        AuthError: If any validation step fails
    """
    if not authorization_header:
        raise AuthError("Missing Authorization header")

    # The "Bearer" scheme (RFC 6750) is matched case-insensitively.
    parts = authorization_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthError("Invalid Authorization header format, expected 'Bearer <token>'")

    token = parts[1].strip()

    decode_kwargs: dict[str, Any] = {
        "algorithms": [settings.jwt_algorithm],
        "options": {"require": ["exp", "sub"]},
    }
    if settings.jwt_audience:
        decode_kwargs["audience"] = settings.jwt_audience
    else:
        # Without a configured audience an "aud" claim cannot be matched.
        decode_kwargs["options"]["verify_aud"] = False

    try:
        payload = jwt.decode(token, settings.jwt_secret_key, **decode_kwargs)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid token: {e}")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthError("Invalid token: 'sub' must be a non-empty string")

    return TokenInfo(subject=subject, claims=MappingProxyType(dict(payload)))
