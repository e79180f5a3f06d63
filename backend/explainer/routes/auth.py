"""
Authentication routes
"""
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..models import User
from ..schemas import GoogleSignInRequest, MessageResponse, UserEnvelope, UserProfile
from ..auth import get_current_user, login_session, logout_session, verify_google_credential
from ..services.users import upsert_user
from ..logger import logger

router = APIRouter(prefix="/auth", tags=["Auth"])


def _profile(user: User) -> UserProfile:
    return UserProfile(id=user.id, name=user.name, email=user.email, avatar=user.avatar)


@router.post("/google", response_model=UserEnvelope)
async def google_sign_in(
    payload: GoogleSignInRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Sign in with a Google ID token and start a session"""
    # certificate fetch is blocking
    identity = await run_in_threadpool(verify_google_credential, payload.credential)

    user = await upsert_user(
        db,
        google_id=identity.google_id,
        email=identity.email,
        name=identity.name,
        avatar=identity.avatar,
    )
    login_session(request, user)

    logger.info(f"User logged in: {user.email}")
    return UserEnvelope(user=_profile(user))


@router.get("/user", response_model=UserEnvelope)
async def current_user(current_user: User = Depends(get_current_user)):
    """Get the signed-in user"""
    return UserEnvelope(user=_profile(current_user))


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request):
    """Logout and drop the session"""
    logout_session(request)
    logger.info("User logged out")
    return MessageResponse(message="Logged out successfully")
