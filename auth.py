import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from jose import JWTError, jwt
from passlib.context import CryptContext

import errors, models
from config import settings
from store import USERS, RecordStore, get_store

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        raise errors.ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return pwd_context.hash(password)


def verify_password(password, hash) -> bool:
    if not password or not hash:
        return False
    try:
        return pwd_context.verify(password, hash)
    except (ValueError, TypeError):
        return False


# Checked against when the email is unknown, so a failed login costs the same
# whether or not the account exists.
_DUMMY_HASH = pwd_context.hash("bookshelf-timing-dummy")


def authenticate_user(store: RecordStore, email: str, password: str) -> models.User | None:
    record = store.find_by(USERS, "email", email)
    if record is None:
        verify_password(password, _DUMMY_HASH)
        return None
    user = models.User.from_record(record)
    if not verify_password(password, user.password_hash):
        return None
    return user


def require_secret() -> str:
    if not settings.JWT_SECRET:
        raise errors.ConfigError("JWT_SECRET is missing. Set it in the environment or .env")
    return settings.JWT_SECRET


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    secret = require_secret()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    issued_at = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(payload, secret, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> models.TokenClaim:
    secret = require_secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise errors.InvalidTokenError(str(exc)) from exc

    user_id = payload.get("userId")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")
    if not isinstance(user_id, str) or not user_id:
        raise errors.InvalidTokenError("Token missing user id")
    if not isinstance(issued_at, (int, float)) or not isinstance(expires_at, (int, float)):
        raise errors.InvalidTokenError("Token missing iat/exp")

    return models.TokenClaim(
        user_id=user_id,
        issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
    )


def extract_token(authorization: str | None) -> str | None:
    # Whatever follows the scheme is the credential; a non-Bearer scheme still
    # counts as a credential that was sent, and fails verification.
    _, token = get_authorization_scheme_param(authorization)
    return token.strip() or None


def get_current_user(
    request: Request,
    store: RecordStore = Depends(get_store),
) -> models.User:
    """Resolve the bearer token to a stored user.

    401 when no token is sent or the token names a user that does not exist,
    403 when a token is sent but fails verification. Errors while loading the
    user also answer 403.
    """
    token = extract_token(request.headers.get("Authorization"))
    if not token:
        raise errors.AuthenticationError("Access token required")

    try:
        claim = decode_access_token(token)
    except errors.InvalidTokenError as exc:
        logger.info("Token verification failed: %s", exc)
        raise errors.AuthorizationError("Invalid token")

    try:
        record = store.find(USERS, claim.user_id)
        user = models.User.from_record(record) if record is not None else None
    except Exception:
        logger.exception("Could not resolve user for token")
        raise errors.AuthorizationError("Invalid token")

    if user is None:
        raise errors.AuthenticationError("Invalid token")

    request.state.user = user
    return user
