from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from . import auth_utils, schemas
from .chat import ChatHub
from .config import Settings
from .exceptions import Forbidden, Unauthorized
from .storage import CatalogRepository

# Where clients obtain a token (the OAuth2 form endpoint, used by the docs UI)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/token")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> CatalogRepository:
    """
    The repository injected into every route.
    Set once by create_app; tests pass their own.
    """
    return request.app.state.storage


def get_chat_hub(request: Request) -> ChatHub:
    return request.app.state.chat_hub


def get_current_user(
    token: str = Depends(oauth2_scheme),
    storage: CatalogRepository = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> schemas.UserInDB:
    """
    Validate the bearer token and return the logged-in user.
    Anything wrong with the token is a 401.
    """
    # 1. Decode the token
    payload = auth_utils.decode_token(token, settings)
    if payload is None or payload.get("type") != auth_utils.ACCESS_TOKEN_TYPE:
        raise Unauthorized("Could not validate credentials")

    # 2. The subject is the user id
    user_id = payload.get("sub")
    if user_id is None:
        raise Unauthorized("Could not validate credentials")

    # 3. Look the user up so deleted accounts stop working
    user = storage.get_user(user_id)
    if user is None:
        raise Unauthorized("Could not validate credentials")

    return user


def get_current_admin(current_user: schemas.UserInDB = Depends(get_current_user)) -> schemas.UserInDB:
    """
    Admin-only gate. The flag is read from the store, never from the client.
    """
    if not current_user.is_admin:
        raise Forbidden("Access denied: administrators only")
    return current_user
