from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_settings
from app.db.session import get_session
from app.services.accounts import AccountService

router = APIRouter(tags=["auth"])


class LoginIn(BaseModel):
    username: Optional[str] = None
    password: str = Field(min_length=1)


class ForgotPasswordIn(BaseModel):
    username: str = Field(min_length=1)


class ResetPasswordIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str = Field(min_length=1)
    verification_code: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


def get_account_service(request: Request, db: AsyncSession = Depends(get_session)) -> AccountService:
    return AccountService(db, request.app.state.settings, notifications=request.app.state.notifications)


@router.post("/login")
async def login(payload: LoginIn, response: Response, svc: AccountService = Depends(get_account_service), settings=Depends(get_settings)):
    token = await svc.authenticate(payload.password, username=payload.username)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_TTL_HOURS * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return {"success": True, "message": "Login successful"}


@router.post("/logout")
async def logout(response: Response, settings=Depends(get_settings)):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, httponly=True, secure=settings.is_production, samesite="strict")
    return {"success": True}


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordIn, svc: AccountService = Depends(get_account_service)):
    result = await svc.request_password_reset(payload.username)
    return {"success": True, "notificationError": result.notification_error}


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordIn, svc: AccountService = Depends(get_account_service)):
    await svc.confirm_password_reset(payload.username, payload.verification_code, payload.new_password)
    return {"success": True}
