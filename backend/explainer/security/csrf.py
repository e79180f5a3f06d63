"""
Session-bound CSRF tokens.

The secret lives in the server-side session; the client only ever sees tokens
derived from it. A token is ``<salt>-<digest>`` where the digest is an
HMAC-SHA256 of the salt keyed by the secret, so verification needs nothing but
the secret and the token.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import string
from typing import Any, MutableMapping, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..exceptions import CSRFInvalidError, error_payload
from ..logger import logger

SESSION_KEY = "csrf_secret"
HEADER_NAME = "x-csrf-token"
SAFE_METHODS = frozenset({"GET"})
EXEMPT_PREFIXES = ("/auth/",)

_SALT_ALPHABET = string.ascii_letters + string.digits
_SALT_LENGTH = 8


def generate_secret() -> str:
    return secrets.token_urlsafe(18)


def _digest(secret: str, salt: str) -> str:
    mac = hmac.new(secret.encode(), salt.encode(), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(mac).rstrip(b"=").decode("ascii")


def create_token(secret: str) -> str:
    salt = "".join(secrets.choice(_SALT_ALPHABET) for _ in range(_SALT_LENGTH))
    return f"{salt}-{_digest(secret, salt)}"


def verify_token(secret: Optional[str], token: Optional[str]) -> bool:
    if not secret or not token or not isinstance(token, str):
        return False
    salt, sep, digest = token.partition("-")
    if not sep or not salt or not digest:
        return False
    return hmac.compare_digest(digest, _digest(secret, salt))


def issue_token(session: MutableMapping[str, Any]) -> str:
    """Rotate the session secret and hand out a token derived from it."""
    secret = generate_secret()
    session[SESSION_KEY] = secret
    return create_token(secret)


def requires_check(method: str, path: str) -> bool:
    if method.upper() in SAFE_METHODS:
        return False
    return not path.startswith(EXEMPT_PREFIXES)


def check_request(request: Request) -> None:
    """Raise CSRFInvalidError unless the request carries a token for its session."""
    if not requires_check(request.method, request.url.path):
        return
    token = request.headers.get(HEADER_NAME)
    secret = request.session.get(SESSION_KEY)
    if not verify_token(secret, token):
        raise CSRFInvalidError()


async def csrf_middleware(request: Request, call_next):
    try:
        check_request(request)
    except CSRFInvalidError as exc:
        logger.warning(
            "CSRF check failed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "token_present": HEADER_NAME in request.headers,
            }
        )
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))
    return await call_next(request)
