from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError

from app.db.session import SessionLocal
from app.services.internal_auth import assert_internal_access
from app.services.user_identity import DEFAULT_IDENTITY_PROVIDER, UserIdentityService

router = APIRouter(tags=["internal", "identity"])


class IdentityLoginRequest(BaseModel):
    provider: str = Field(default=DEFAULT_IDENTITY_PROVIDER, min_length=1, max_length=20)
    provider_user_id: str = Field(min_length=1, max_length=100)
    username: str | None = Field(default=None, max_length=100)
    display_name: str | None = Field(default=None, max_length=200)
    avatar_url: str | None = Field(default=None, max_length=2000)
    followers_count: int = Field(default=0, ge=0)


class IdentityLoginResponse(BaseModel):
    user_id: int = Field(gt=0)
    login_count: int = Field(ge=1)
    is_first_login: bool


@router.post("/auth/identity", response_model=IdentityLoginResponse)
async def record_identity_login(
    payload: IdentityLoginRequest,
    request: Request,
) -> IdentityLoginResponse:
    assert_internal_access(request, scope="identity")

    try:
        async with SessionLocal.begin() as session:
            result = await UserIdentityService.record_login(
                session,
                provider=payload.provider,
                provider_user_id=payload.provider_user_id,
                username=payload.username,
                display_name=payload.display_name,
                avatar_url=payload.avatar_url,
                followers_count=payload.followers_count,
            )
    except DBAPIError as exc:
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc

    return IdentityLoginResponse(
        user_id=result.user_id,
        login_count=result.login_count,
        is_first_login=result.is_first_login,
    )
