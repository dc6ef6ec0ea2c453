"""
Security utilities: admin password hashing and signed session tokens
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# Token generation and validation
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import ADMIN_TOKEN_EXPIRE_MINUTES, SECRET_KEY, USER_TOKEN_EXPIRE_DAYS

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Hex rendering of a signed 32-bit integer, as stored by earlier browser clients
LEGACY_HASH_PATTERN = re.compile(r"^-?[0-9a-f]{1,8}$")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def legacy_password_hash(password: str) -> str:
    """
    Rolling 32-bit string hash (h = h * 31 + code unit) over UTF-16 code units.
    NOT secure; only kept to accept hashes stored by earlier clients.
    """
    value = 0
    encoded = password.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = int.from_bytes(encoded[i : i + 2], "little")
        value = ((value << 5) - value + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 1 << 32
    return f"-{-value:x}" if value < 0 else f"{value:x}"


def is_legacy_hash(stored_hash: str) -> bool:
    return bool(LEGACY_HASH_PATTERN.match(stored_hash or ""))


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_admin_password(plain_password: str, stored_hash: str) -> bool:
    """Verify against a bcrypt hash, or a legacy rolling hash when that is what is stored"""
    if not stored_hash:
        return False

    if is_legacy_hash(stored_hash):
        logger.warning("⚠️ Admin password verified against legacy rolling hash")
        return legacy_password_hash(plain_password) == stored_hash

    try:
        return pwd_context.verify(plain_password, stored_hash)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time (default 15 minutes)
    """
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({"iat": now, "exp": now + (expires_delta or timedelta(minutes=15))})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def create_admin_token() -> str:
    return create_jwt_token({"role": "admin"}, timedelta(minutes=ADMIN_TOKEN_EXPIRE_MINUTES))


def create_user_token(user_id: str, email: str, name: str) -> str:
    return create_jwt_token(
        {"role": "user", "id": user_id, "email": email, "name": name},
        timedelta(days=USER_TOKEN_EXPIRE_DAYS),
    )
