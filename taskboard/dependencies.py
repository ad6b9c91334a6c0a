"""
Taskboard API: Request Dependencies
====================================

What:  Authentication dependency shared by the protected routers.
How:   HTTPBearer(auto_error=False) extracts the header so the failure can be
       raised as our own UnauthorizedError and rendered by the global handler.

Failure Modes:
    no Authorization header / not "Bearer <token>"   → 401 UnauthorizedError
    bad signature, expired, refresh token presented  → 403 ForbiddenError
"""

import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskboard.exceptions import UnauthorizedError
from taskboard.services.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> uuid.UUID:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    return decode_access_token(credentials.credentials).user_id
