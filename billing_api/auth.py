# billing_api/auth.py
import time
from typing import Optional

from jose import JWTError, jwt

from .config import get_settings
from .errors import Unauthorized


def create_profile_token(profile_id: int, expires_in: int = 3600) -> str:
    settings = get_settings()
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET not set")
    now = int(time.time())
    claims = {"sub": str(profile_id), "iat": now, "exp": now + expires_in}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def profile_id_from_token(token: str) -> int:
    """
    Verify a bearer token and return the profile id in its ``sub`` claim.

    Tokens are signed with JWT_SECRET. Expired, tampered or subject-less
    tokens raise Unauthorized.
    """
    settings = get_settings()
    if not settings.jwt_secret:
        raise Unauthorized("Bearer tokens are not enabled")
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise Unauthorized(f"Invalid token: {e}")

    sub: Optional[str] = claims.get("sub")
    if not sub:
        raise Unauthorized("Token missing subject (sub)")
    try:
        return int(sub)
    except ValueError:
        raise Unauthorized("Token subject is not a profile id")
