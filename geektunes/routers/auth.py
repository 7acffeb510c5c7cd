import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from .. import auth_utils, schemas, dependencies
from ..config import Settings
from ..exceptions import Forbidden, Unauthorized
from ..storage import CatalogRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Auth"]
)

INVALID_CREDENTIALS = "Invalid credentials"


def _authenticate(storage: CatalogRepository, username: str, password: str):
    """
    Same answer for an unknown username and a wrong password, so the
    response never reveals which accounts exist.
    """
    user = storage.get_user_by_username(username)
    if user is None:
        # unknown users cost the same bcrypt time as known ones
        auth_utils.dummy_verify()
    if user is None or not auth_utils.verify_password(password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise Unauthorized(INVALID_CREDENTIALS)
    return user


def _issue_tokens(user: schemas.UserInDB, storage: CatalogRepository, settings: Settings):
    # 1. Access token (short-lived)
    access_token = auth_utils.create_access_token(data={"sub": user.id}, settings=settings)

    # 2. Refresh token, stored so logout can revoke it
    refresh_token, expires_at = auth_utils.create_refresh_token(data={"sub": user.id}, settings=settings)
    storage.store_refresh_token(user.id, refresh_token, expires_at)

    return access_token, refresh_token


# [POST] /api/register
# ----------------------------------------------------
@router.post("/register", response_model=schemas.RegisterResponse)
def register(
    user: schemas.UserCreate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    settings: Settings = Depends(dependencies.get_settings),
):
    """
    Create an account.

    - **username**: unique (required)
    - **password**: stored as a bcrypt hash (required)
    - **email**, **firstName**, **lastName**: optional

    A taken username is rejected with 400.
    """
    hashed_password = auth_utils.get_password_hash(user.password)
    new_user = storage.create_user(
        user.username,
        hashed_password,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        is_admin=user.username in settings.admin_usernames,
    )
    logger.info("Registered user %s", new_user.username)
    return {"user": {"id": new_user.id, "username": new_user.username}}


# [POST] /api/login
# ----------------------------------------------------
@router.post("/login", response_model=schemas.LoginResponse)
def login(
    credentials: schemas.LoginRequest,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    settings: Settings = Depends(dependencies.get_settings),
):
    """
    Check username and password and return the user with a token pair.
    The password hash is never part of the response.
    """
    user = _authenticate(storage, credentials.username, credentials.password)
    access_token, refresh_token = _issue_tokens(user, storage, settings)
    return {
        "user": schemas.User.model_validate(user),
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }


# [POST] /api/token  (OAuth2 password form, used by the interactive docs)
# ----------------------------------------------------
@router.post("/token")
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    storage: CatalogRepository = Depends(dependencies.get_storage),
    settings: Settings = Depends(dependencies.get_settings),
):
    user = _authenticate(storage, form_data.username, form_data.password)
    access_token, refresh_token = _issue_tokens(user, storage, settings)
    # RFC 6749 field names
    return {"access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer"}


# [POST] /api/refresh
# ----------------------------------------------------
@router.post("/refresh", response_model=schemas.Token)
def refresh_token(
    body: schemas.RefreshRequest,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    settings: Settings = Depends(dependencies.get_settings),
):
    """
    Exchange a refresh token for a new access token.
    """
    # 1. Verify signature and expiry
    payload = auth_utils.decode_token(body.refresh_token, settings)
    if payload is None:
        raise Unauthorized("Invalid refresh token")

    # 2. An access token is not accepted here
    if payload.get("type") != auth_utils.REFRESH_TOKEN_TYPE:
        raise Unauthorized("Not a refresh token")

    # 3. Logged-out tokens are gone from the store
    if not storage.is_refresh_token_active(body.refresh_token):
        raise Unauthorized("Refresh token has been revoked, log in again")

    user_id = payload.get("sub")
    user = storage.get_user(user_id) if user_id else None
    if user is None:
        raise Unauthorized("User not found")

    # The refresh token itself is returned unchanged (no rotation)
    new_access_token = auth_utils.create_access_token(data={"sub": user.id}, settings=settings)
    return {
        "access_token": new_access_token,
        "refresh_token": body.refresh_token,
        "token_type": "bearer",
    }


# [POST] /api/logout
# ----------------------------------------------------
@router.post("/logout")
def logout(
    body: schemas.RefreshRequest,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    settings: Settings = Depends(dependencies.get_settings),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Revoke the refresh token (log out). Requires a valid access token,
    and the refresh token must belong to the same user.
    """
    payload = auth_utils.decode_token(body.refresh_token, settings)
    if payload is None or payload.get("sub") != current_user.id:
        raise Forbidden("Not allowed to revoke this token")

    storage.revoke_refresh_token(body.refresh_token)
    logger.info("User %s logged out", current_user.username)
    return {"message": "Logged out"}
