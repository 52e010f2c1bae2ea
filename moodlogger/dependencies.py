# fastapi dependency injection
# resolves the optional scope identity and builds the entry store for the request

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from moodlogger.config import settings
from moodlogger.services.auth_service import decode_token
from moodlogger.services.db import Database, get_db
from moodlogger.services.entry_store import EntryStore, build_entry_store

logger = logging.getLogger(__name__)

# no token means anonymous (local-only persistence), so don't auto-reject
security = HTTPBearer(auto_error=False)


async def get_scope(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """scope identity from the bearer token subject, or None when anonymous"""
    if credentials is None:
        return None

    payload = decode_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    scope = payload.get("sub")
    if not scope:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing subject",
        )
    return scope


async def get_entry_store(
    scope: Optional[str] = Depends(get_scope),
    db: Database = Depends(get_db),
) -> EntryStore:
    """entry store bound to the request scope: remote when configured and signed in, else local"""
    return build_entry_store(settings, db, scope)
