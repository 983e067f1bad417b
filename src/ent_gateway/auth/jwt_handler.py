"""JWT access-token verification.

Tokens are issued by the identity provider (HS256, shared JWT_SECRET);
this service only verifies them. `sub` carries the opaque user id that keys
the accounts table.
"""

from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.ent_common.errors import InvalidCredentialsError


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a bearer token.

    Raises:
        InvalidCredentialsError: signature invalid, token expired, or no `sub`.
    """
    audience = settings.JWT_AUDIENCE or None
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],  # Explicit list prevents algorithm confusion
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
