import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

import auth, errors, models, schemas
from store import USERS, RecordStore, StoreError, get_store

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


def _require_credentials(payload: schemas.UserCredentials | None) -> schemas.UserCredentials:
    if payload is None or not payload.email or not payload.password:
        raise errors.ValidationError("Email and password are required")
    return payload


def _auth_response(user: models.User) -> dict:
    return {
        "token": auth.create_access_token(user.id),
        "user": schemas.UserPublic.model_validate(user),
    }


# Register
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: schemas.UserCredentials | None = None,
    store: RecordStore = Depends(get_store),
):
    credentials = _require_credentials(payload)
    hashed = auth.hash_password(credentials.password)

    try:
        with store.lock(USERS):
            users = store.read(USERS)
            if any(existing.get("email") == credentials.email for existing in users):
                raise errors.ValidationError("User already exists with this email")

            new_user = models.User(
                id=str(uuid.uuid4()),
                email=credentials.email,
                password_hash=hashed,
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            users.append(new_user.to_record())
            store.write(USERS, users)
    except StoreError as exc:
        logger.error(f"Registration error: {exc}")
        raise errors.InternalError("Registration failed")

    logger.info("Registered user %s", new_user.id)
    return _auth_response(new_user)


# Login
@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.UserCredentials | None = None,
    store: RecordStore = Depends(get_store),
):
    credentials = _require_credentials(payload)

    try:
        user = auth.authenticate_user(store, credentials.email, credentials.password)
    except StoreError as exc:
        logger.error(f"Login error: {exc}")
        raise errors.InternalError("Login failed")

    if user is None:
        raise errors.AuthenticationError("Invalid email or password")

    return _auth_response(user)
