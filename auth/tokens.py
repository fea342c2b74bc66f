"""
auth/tokens.py -- JWT issuance/verification, password hashing, and login.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the user id, role, and expiry ({"id", "role", "exp"}). Verification
       returns None on any failure -- the auth gate turns that into a 401.

  Passwords: bcrypt with a fresh random salt per call, so two hashes of the
       same password differ. Compare with verify_password(), never by
       equality of hashes.

  SECRET_KEY: sourced from core.config.get_settings(). Settings refuses to
       load without one; there is no built-in default secret.

Layer rule: no imports from api/ or gym/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import Principal, Role, User
from core.config import get_settings
from core.errors import AuthenticationError, NotFoundError

if TYPE_CHECKING:
    from auth.store import UserStore

logger = logging.getLogger("gymdesk.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def _to_bcrypt_secret(plain: str) -> bytes:
    # bcrypt only uses the first 72 bytes; newer releases raise instead of
    # truncating, so truncate explicitly.
    return plain.encode("utf-8")[:72]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_to_bcrypt_secret(plain), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_to_bcrypt_secret(plain), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, role: Role | str, expires_delta: timedelta | None = None) -> str:
    """Encode a signed JWT carrying the user id and role.

    Args:
        user_id:       Numeric user ID stored in the DB.
        role:          Role enum member or its string value.
        expires_delta: Lifetime of the token. Defaults to
                       Settings.token_expire_seconds (one day).
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.token_expire_seconds)
    payload = {
        "id": user_id,
        "role": Role(role).value,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Principal | None:
    """Verify a JWT and return the Principal it names, or None on any failure.

    Bad signature, expiry, missing claims and unknown roles are all treated
    the same way: the token is not trusted.
    """
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    try:
        return Principal(user_id=int(payload["id"]), role=Role(payload["role"]))
    except (KeyError, TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User:
    """Check a username/password pair and return the matching User.

    Raises:
        NotFoundError:       no user has this username (reported as 400 by
                             the login route).
        AuthenticationError: the password does not match, or the account
                             is inactive.
    """
    user = store.get_by_username(username)
    if user is None:
        logger.info("Login failed: unknown username")
        raise NotFoundError("user not found", code="user_not_found")
    if not verify_password(password, user.password_hash):
        logger.info("Login failed: bad password for user_id=%s", user.id)
        raise AuthenticationError("invalid credentials", code="invalid_credentials")
    if not user.is_active:
        logger.info("Login refused: user_id=%s is inactive", user.id)
        raise AuthenticationError("account is inactive", code="inactive_account")
    return user


def login(store: UserStore, username: str, password: str) -> tuple[str, User]:
    """Authenticate and issue a token. Returns (token, user)."""
    user = authenticate_user(store, username, password)
    token = create_access_token(user.id, user.role)
    logger.info("Login succeeded for user_id=%s role=%s", user.id, user.role.value)
    return token, user
