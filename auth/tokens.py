"""
auth/tokens.py -- JWT, password hashing, and the three identity flows.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry only
       the user id (sub) and expiry (exp). Role and faculty are NOT in the
       token: resolve_identity() re-reads them from the store on every request,
       so a demotion or deactivation takes effect immediately.

  Passwords: bcrypt directly (no passlib wrapper). The cost factor comes from
       Settings.bcrypt_rounds (>= 10). The _DUMMY_HASH constant enables timing
       equalization in authenticate() so response time does not reveal whether
       an email is registered.

  Errors: every failure raises a typed AuthError from core/errors.py. The API
       boundary turns those into 401 envelopes; nothing here knows about HTTP.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup: dev mode (DEBUG=true) auto-generates a
       random key with a warning; production mode refuses to start without one.

Only authenticate() and register() issue tokens.

Layer rule: no imports from api/, academics/, or reports/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings
from core.errors import DuplicateEmail, InvalidCredentials, InvalidToken, UserNotFound

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("luct.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are truncated by bcrypt. The API layer caps
    password length at 72 characters (Pydantic field) so this never bites.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the store (e.g. a legacy plaintext row).
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("luct_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, expire_seconds: int = 0) -> str:
    """Encode a signed JWT carrying the user id as subject.

    Args:
        user_id:        Numeric user ID stored in the DB.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Verify a JWT and return the user id it names.

    Raises InvalidToken for a malformed token, a bad signature, an expired
    token, or a missing/non-numeric subject.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken() from exc
    sub = payload.get("sub")
    if sub is None:
        raise InvalidToken()
    try:
        return int(sub)
    except (TypeError, ValueError) as exc:
        raise InvalidToken() from exc


# ---------------------------------------------------------------------------
# Identity flows
# ---------------------------------------------------------------------------


def authenticate(store: UserStore, email: str, password: str) -> tuple[str, User]:
    """Verify an email/password pair and issue a token.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash

    Unknown email, wrong password and a deactivated account all raise the same
    InvalidCredentials so the response does not reveal which one it was.
    """
    user = store.get_by_email(email)
    if user is None or not user.hashed_password:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials()
    if not user.active:
        raise InvalidCredentials()
    logger.info("User %s logged in", user.id)
    return create_access_token(user.id), user


def resolve_identity(store: UserStore, token: str) -> User:
    """Return the current User for a bearer token.

    The user row is re-fetched on every call, so role, faculty and active
    status always reflect the store, never the token.
    """
    user_id = decode_access_token(token)
    user = store.get_by_id(user_id)
    if user is None or not user.active:
        raise UserNotFound()
    return user


def register(store: UserStore, profile: User, password: str) -> tuple[str, User]:
    """Create an account from profile and issue a token.

    The email check here gives the common case a clean error; the UNIQUE
    constraint backs it up, and UserStore.create_user() maps a lost race to
    the same DuplicateEmail.
    """
    if store.get_by_email(profile.email) is not None:
        raise DuplicateEmail()
    user = replace(
        profile,
        faculty=profile.faculty or _settings.default_faculty,
        hashed_password=hash_password(password),
    )
    user.id = store.create_user(user)
    created = store.get_by_id(user.id)
    logger.info("Registered user %s (%s, %s)", created.id, created.role, created.faculty)
    return create_access_token(created.id), created
