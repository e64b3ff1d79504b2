# File: markets/auth.py
"""Identity provider glue.

Sign-in and sign-out happen in the browser against Firebase Authentication;
the service only verifies the ID token the client sends and reads the uid.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth

from markets.errors import AuthError
from markets.firebase import get_app

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class User:
    uid: str
    display_name: str = ""
    photo_url: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def verify_token(id_token: str) -> User:
    try:
        claims = firebase_auth.verify_id_token(id_token, app=get_app())
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError) as e:
        raise AuthError(str(e)) from e
    return User(
        uid=claims["uid"],
        display_name=claims.get("name") or "",
        photo_url=claims.get("picture"),
    )


def current_user(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> User:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Sign in required")
    try:
        return verify_token(credentials.credentials)
    except AuthError as e:
        logger.info("Rejected identity token: %s", e)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or expired sign-in") from e
