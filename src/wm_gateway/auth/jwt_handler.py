"""JWT access-token verification.

Tokens are issued by the platform's auth service with a shared HS256
secret; this service only verifies them. Claims used: sub (user id),
type (must be "access") and exp.
"""

from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.wm_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def decode_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """Decode and validate a JWT.

    Raises:
        InvalidCredentialsError: bad signature, expired, or wrong token type.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != expected_type:
        raise InvalidCredentialsError()
    return payload
