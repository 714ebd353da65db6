"""JWT-based token generation and verification.

Tokens are stateless HS256-signed JWTs carrying the account id, e-mail, role
and display name. No server-side storage is involved, so any number of
workers or replicas can verify them with the shared secret.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from src.log import get_logger

logger = get_logger(__name__)

ALGORITHM = "HS256"


def _secret() -> str:
    from config.settings import settings
    return settings.auth.secret_key


def create_token(
    user_id: int,
    email: str,
    role: str,
    name: str,
    expire_hours: Optional[float] = None,
) -> str:
    """Sign and return a new JWT for the account.

    Args:
        user_id: Account id, stored in both ``sub`` and ``id``.
        email, role, name: Copied into the claims so clients can render the
            signed-in user without another round trip.
        expire_hours: Lifetime in hours; defaults to ``settings.auth.token_expire_hours``.
    """
    from config.settings import settings

    hours = expire_hours if expire_hours is not None else settings.auth.token_expire_hours
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "role": role,
        "name": name,
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Validate *token* and return its claims.

    Returns ``None`` on any failure (expired, tampered, malformed, missing id).
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("rejected expired token")
        return None
    except jwt.InvalidTokenError:
        return None

    if not isinstance(payload.get("id"), int):
        return None
    return payload


def verify_token(token: str) -> Optional[int]:
    """Return the account id carried by a valid token, else ``None``."""
    payload = decode_token(token)
    return payload["id"] if payload else None
