"""Profile routes for the authenticated owner."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from todoai.api.deps import get_owner_scope
from todoai.api.schemas.auth import ProfileResponse, ProfileUpdateRequest
from todoai.db.access import OwnerScope
from todoai.observability.tracing import trace

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
def get_profile(scope: OwnerScope = Depends(get_owner_scope)) -> ProfileResponse:
    return ProfileResponse.model_validate(scope.profile())


@router.patch("", response_model=ProfileResponse)
def update_profile(payload: ProfileUpdateRequest, scope: OwnerScope = Depends(get_owner_scope)) -> ProfileResponse:
    with trace("profile.update", metadata={"route": "/profile"}):
        user = scope.update_profile(name=payload.name.strip())
        scope.db.commit()
        scope.db.refresh(user)
    return ProfileResponse.model_validate(user)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_profile(scope: OwnerScope = Depends(get_owner_scope)) -> Response:
    """Delete the profile; owned tasks go with it."""
    with trace("profile.delete", metadata={"route": "/profile"}):
        scope.delete_profile()
        scope.db.commit()
    logger.info("Deleted profile %s", scope.owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
