"""
Authentication service: password hashing, JWT access tokens, email checks.
"""

import os
import re
import secrets
import logging
from datetime import timedelta
from typing import Optional, Dict

import bcrypt
from jose import jwt, JWTError
from dotenv import load_dotenv

from leaguehub.utils.datetime_utils import utcnow

load_dotenv()

logger = logging.getLogger(__name__)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    logger.warning("JWT_SECRET_KEY is not set; using a random per-process key")
    JWT_SECRET_KEY = secrets.token_hex(32)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRATION_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRATION_MINUTES", "1440"))

# Same shape the signup form accepts: something@something.tld
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.

    Args:
        password: Plain text password

    Returns:
        bcrypt hash as a string
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plain text password against a bcrypt hash.

    Returns:
        True if the password matches, False otherwise (including malformed hashes)
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (must include user_id)
        expires_delta: Optional lifetime; defaults to ACCESS_TOKEN_EXPIRATION_MINUTES

    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRATION_MINUTES))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """
    Decode and validate a JWT access token.

    Returns:
        The token payload, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def normalize_email(email: str) -> str:
    """Lowercase and strip an email address."""
    return email.strip().lower()


def validate_email(email: str) -> bool:
    """Return True if the email looks like a deliverable address."""
    return bool(email) and bool(_EMAIL_RE.match(email.strip()))
