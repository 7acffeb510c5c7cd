import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from .. import schemas, dependencies
from ..exceptions import Forbidden
from ..storage import CatalogRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/artists",
    tags=["Artists"]
)


# [GET] /api/artists
# ----------------------------------------------------
@router.get("", response_model=List[schemas.Artist])
def read_artists(storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Every active artist, in the order they were added.
    """
    return storage.get_all_artists()


# [GET] /api/artists/role/{role}
# ----------------------------------------------------
@router.get("/role/{role}", response_model=List[schemas.Artist])
def read_artists_by_role(role: str, storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Active artists with exactly this role tag (case-sensitive).
    An unknown role is an empty list.
    """
    return storage.get_artists_by_role(role)


# [GET] /api/artists/search/{query}
# ----------------------------------------------------
@router.get("/search/{query}", response_model=List[schemas.Artist])
def search_artists(query: str, storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Case-insensitive substring search over name, description and role tags.
    A blank query is a 400.
    """
    return storage.search_artists(query)


# [GET] /api/artists/{artist_id}
# ----------------------------------------------------
@router.get("/{artist_id}", response_model=schemas.Artist)
def read_artist(artist_id: int, storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    One artist by id. Inactive artists are returned too.
    """
    artist = storage.get_artist(artist_id)
    if artist is None:
        raise HTTPException(status_code=404, detail="Artist not found")
    return artist


# [PUT] /api/artists/{artist_id}
# ----------------------------------------------------
@router.put("/{artist_id}", response_model=schemas.Artist)
def update_own_artist(
    artist_id: int,
    artist: schemas.ArtistUpdate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Let a user edit the artist profile they own.
    Ownership and activation are not editable from here.
    """
    # 1. Find the artist
    db_artist = storage.get_artist(artist_id)
    if db_artist is None:
        raise HTTPException(status_code=404, detail="Artist not found")

    # 2. Only the owner
    if db_artist.user_id != current_user.id:
        raise Forbidden("Not allowed to edit this profile")

    # 3. Apply only the fields present in the body
    changes = artist.model_dump(exclude_unset=True)
    for key in ("user_id", "is_active"):
        changes.pop(key, None)
    return storage.update_artist(artist_id, changes)


# [GET] /api/artists/{artist_id}/tracks
# ----------------------------------------------------
@router.get("/{artist_id}/tracks", response_model=List[schemas.Track])
def read_artist_tracks(artist_id: int, storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Preview tracks of one artist, newest first.
    """
    return storage.get_artist_tracks(artist_id)


# --- Likes ---

# [POST] /api/artists/{artist_id}/like
# ----------------------------------------------------
@router.post("/{artist_id}/like", response_model=schemas.Like, status_code=201)
def like_artist(
    artist_id: int,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Like an artist. Liking twice is a 400; an unknown artist is a 404.
    """
    return storage.like_artist(current_user.id, artist_id)


# [DELETE] /api/artists/{artist_id}/like
# ----------------------------------------------------
@router.delete("/{artist_id}/like", status_code=204)
def unlike_artist(
    artist_id: int,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    storage.unlike_artist(current_user.id, artist_id)
    return Response(status_code=204)


# [GET] /api/artists/{artist_id}/liked
# ----------------------------------------------------
@router.get("/{artist_id}/liked", response_model=schemas.LikeStatus)
def is_artist_liked(
    artist_id: int,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    return {"is_liked": storage.is_artist_liked(current_user.id, artist_id)}
