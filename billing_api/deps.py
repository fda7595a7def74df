# billing_api/deps.py
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .auth import profile_id_from_token
from .db import get_session
from .errors import Unauthorized
from .tables import Profile


def get_profile(
    authorization: Optional[str] = Header(default=None),
    profile_id: Optional[str] = Header(default=None, convert_underscores=False),
    session: Session = Depends(get_session),
) -> Optional[Profile]:
    """Resolve the acting profile, or None when the caller sent no usable credential."""
    if authorization:
        if not authorization.lower().startswith("bearer "):
            raise Unauthorized("Missing bearer token")
        pid = profile_id_from_token(authorization.split(" ", 1)[1])
    elif profile_id:
        try:
            pid = int(profile_id)
        except ValueError:
            return None
    else:
        return None

    return session.get(Profile, pid)
