"""
Session authentication utilities and dependencies
"""
from dataclasses import dataclass
from fastapi import Depends, Request
from google.auth.exceptions import TransportError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional
from .models import User
from .db import get_db
from .config import settings
from .exceptions import AuthRequiredError, UpstreamFailure
from .logger import logger
from .services.users import get_user

SESSION_USER_KEY = "user_id"
INVALID_CREDENTIAL_MESSAGE = "Invalid Google credential"

_google_request = google_requests.Request()


@dataclass(frozen=True)
class GoogleIdentity:
    google_id: str
    email: str
    name: str
    avatar: Optional[str] = None


def verify_google_credential(credential: str) -> GoogleIdentity:
    """
    Verify a Google ID token and return the identity it carries.

    The token must be addressed to this app's client id; without a
    configured client id no token is accepted.
    """
    if not settings.GOOGLE_CLIENT_ID:
        logger.error("GOOGLE_CLIENT_ID is not configured, rejecting Google sign-in")
        raise AuthRequiredError(INVALID_CREDENTIAL_MESSAGE)

    try:
        claims: Dict[str, Any] = id_token.verify_oauth2_token(
            credential, _google_request, settings.GOOGLE_CLIENT_ID
        )
    except TransportError as e:
        logger.error(f"Could not fetch Google signing certificates: {e}")
        raise UpstreamFailure("Could not verify the Google credential. Please try again.")
    except ValueError as e:
        logger.warning(f"Google credential rejected: {e}")
        raise AuthRequiredError(INVALID_CREDENTIAL_MESSAGE)

    email = claims.get("email")
    if not claims.get("sub") or not email:
        raise AuthRequiredError("Google credential is missing the account id or email")

    return GoogleIdentity(
        google_id=claims["sub"],
        email=email,
        name=claims.get("name") or email,
        avatar=claims.get("picture"),
    )


def login_session(request: Request, user: User) -> None:
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Optional authentication - returns User if the session is signed in, None otherwise
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None

    user = await get_user(db, int(user_id))
    if user is None:
        # account removed since sign-in
        request.session.pop(SESSION_USER_KEY, None)
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional)
) -> User:
    """
    Dependency to get the signed-in user from the session
    """
    if user is None:
        raise AuthRequiredError()
    return user
