from typing import List, Optional

from fastapi import APIRouter, Depends

from .. import schemas, dependencies
from ..storage import CatalogRepository

user_router = APIRouter(
    prefix="/api/user",
    tags=["Users"]
)

users_router = APIRouter(
    prefix="/api/users",
    tags=["Users"]
)


# [GET] /api/user
# ----------------------------------------------------
@user_router.get("", response_model=schemas.User)
def read_users_me(current_user: schemas.UserInDB = Depends(dependencies.get_current_user)):
    """
    The logged-in user (token required).
    """
    return current_user


# [PUT] /api/user/profile
# ----------------------------------------------------
@user_router.put("/profile", response_model=schemas.User)
def update_profile(
    profile: schemas.UserProfileUpdate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Edit email, first/last name and profile image. Omitted fields keep their value.
    """
    return storage.update_user_profile(current_user.id, profile.model_dump(exclude_unset=True))


# [GET] /api/user/artist-profile
# ----------------------------------------------------
@user_router.get("/artist-profile", response_model=Optional[schemas.Artist])
def read_my_artist_profile(
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    The artist profile owned by the logged-in user, or null.
    """
    return storage.get_user_artist_profile(current_user.id)


# [GET] /api/user/likes
# ----------------------------------------------------
@user_router.get("/likes", response_model=List[schemas.Like])
def read_my_likes(
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    return storage.get_user_likes(current_user.id)


# [GET] /api/user/notifications
# ----------------------------------------------------
@user_router.get("/notifications", response_model=List[schemas.Notification])
def read_my_notifications(
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Active notifications addressed to everyone, to this user, or to artists
    when the user owns an artist profile. Newest first.
    """
    return storage.get_user_notifications(current_user.id)


# [GET] /api/users
# ----------------------------------------------------
@users_router.get("", response_model=List[schemas.UserPublic])
def read_users_for_mentions(
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Minimal public info of every user, for @mention completion in the chat.
    """
    return storage.get_all_users()
