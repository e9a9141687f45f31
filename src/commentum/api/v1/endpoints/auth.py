# src/commentum/api/v1/endpoints/auth.py
"""Authentication endpoints for the Commentum API."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from commentum.api.v1.dependencies import ProviderVerifierDep, SessionDep, TokenCodecDep
from commentum.core.security import IdentityClaims
from commentum.schemas import LoginRequest, UserResponse, dump
from commentum.services.users import get_or_create_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/")
async def login(
    request: LoginRequest,
    db: SessionDep,
    codec: TokenCodecDep,
    verifier: ProviderVerifierDep,
) -> dict[str, Any]:
    """Exchange a provider access token for an identity token.

    The provider is asked who owns the access token; the matching user record is
    created or refreshed and a token carrying only the identity is returned.

    Raises:
        HTTPException: 401 if the provider does not accept the access token.
    """
    provider_user = await verifier.verify(request.client_type, request.token)
    if provider_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    identity = IdentityClaims(
        subject_id=provider_user.provider_user_id,
        provider=request.client_type,
    )
    user = get_or_create_user(db, identity, provider_user.username)
    db.commit()
    db.refresh(user)
    logger.info("User %s:%s logged in", identity.provider.value, identity.subject_id)

    user_data = dump(UserResponse, user)
    user_data["avatar"] = provider_user.avatar_url
    return {
        "success": True,
        "token": codec.issue(identity.subject_id, identity.provider),
        "user": user_data,
    }
