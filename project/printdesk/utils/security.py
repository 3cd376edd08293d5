# printdesk/utils/security.py

"""
Password hashing and JWT handling for staff accounts.
passlib with sha256_crypt hashes the passwords; PyJWT signs the bearer tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jwt import encode, decode, ExpiredSignatureError, InvalidTokenError
from passlib.context import CryptContext

from printdesk.config import settings

pwd_context = CryptContext(schemes=["sha256_crypt"], deprecated="auto")

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Builds a signed JWT from the payload (e.g. {"sub": login}).
    Defaults to a 15-minute lifetime when no delta is given.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return encode(to_encode, settings.AUTH_SECRET_KEY, algorithm=ALGORITHM)


class TokenError(Exception):
    """The bearer token is missing, expired, or malformed."""


def decode_access_token(token: str) -> str:
    """
    Verifies the token and returns the login stored in "sub".

    :raises TokenError: with a short reason ("Token expired", "Token invalid", ...)
    """
    if not token:
        raise TokenError("Authorization header required")
    try:
        payload = decode(token, settings.AUTH_SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenError("Token expired")
    except InvalidTokenError:
        raise TokenError("Token invalid")

    login = payload.get("sub")
    if not login:
        raise TokenError("Invalid token")
    return login
