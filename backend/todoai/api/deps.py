"""Request dependencies resolving the authenticated owner."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from todoai.core.context import bind_owner_id
from todoai.core.errors import AuthenticationFailed
from todoai.core.security import decode_access_token
from todoai.db.access import OwnerScope
from todoai.db.deps import get_db
from todoai.db.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_owner_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UUID:
    # Async so the bound owner id is inherited by the threadpool running the route.
    if credentials is None:
        raise AuthenticationFailed()
    owner_id = decode_access_token(credentials.credentials)
    bind_owner_id(str(owner_id))
    return owner_id


def get_owner_scope(
    owner_id: UUID = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
) -> OwnerScope:
    if db.get(User, owner_id) is None:
        raise AuthenticationFailed("This account no longer exists.")
    return OwnerScope(db, owner_id)
