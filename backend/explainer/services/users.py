from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..logger import logger
from ..models import User


async def upsert_user(
    db: AsyncSession,
    *,
    google_id: str,
    email: str,
    name: str,
    avatar: Optional[str] = None,
) -> User:
    """
    Create the user on first sign-in, refresh the profile fields on every
    later one. The external identity id is the lookup key.
    """
    result = await db.execute(select(User).where(User.google_id == google_id))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(google_id=google_id, email=email, name=name, avatar=avatar)
        db.add(user)
        created = True
    else:
        user.email = email
        user.name = name
        user.avatar = avatar
        created = False

    await db.commit()
    await db.refresh(user)

    logger.info(
        "New user registered" if created else "User profile refreshed",
        extra={"user_id": user.id, "email": user.email},
    )
    return user


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)
