import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from .. import schemas, dependencies
from ..exceptions import Forbidden
from ..storage import CatalogRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/tracks",
    tags=["Tracks"]
)


def _get_owned_track(track_id: int, storage: CatalogRepository, user: schemas.UserInDB) -> schemas.Track:
    """The track, if it belongs to the artist profile of ``user``."""
    track = storage.get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")
    profile = storage.get_user_artist_profile(user.id)
    if profile is None or track.artist_id != profile.id:
        raise Forbidden("Not allowed to change this track")
    return track


# [GET] /api/tracks
# ----------------------------------------------------
@router.get("", response_model=List[schemas.Track])
def read_tracks(storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Every preview track, newest first.
    """
    return storage.get_all_tracks()


# [GET] /api/tracks/{track_id}
# ----------------------------------------------------
@router.get("/{track_id}", response_model=schemas.Track)
def read_track(track_id: int, storage: CatalogRepository = Depends(dependencies.get_storage)):
    track = storage.get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return track


# [POST] /api/tracks
# ----------------------------------------------------
@router.post("", response_model=schemas.Track, status_code=201)
def create_track(
    track: schemas.TrackCreate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Upload a track to your own artist profile.

    - **title**, **audioUrl**: required
    - **coverUrl**, **genre**, **duration** (seconds): optional

    Users without an artist profile get 403.
    """
    profile = storage.get_user_artist_profile(current_user.id)
    if profile is None:
        raise Forbidden("Only artists can create tracks")
    new_track = storage.create_track(profile.id, track)
    logger.info("Track %s created for artist %s", new_track.id, profile.id)
    return new_track


# [PUT] /api/tracks/{track_id}
# ----------------------------------------------------
@router.put("/{track_id}", response_model=schemas.Track)
def update_track(
    track_id: int,
    track: schemas.TrackUpdate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    _get_owned_track(track_id, storage, current_user)
    return storage.update_track(track_id, track.model_dump(exclude_unset=True))


# [DELETE] /api/tracks/{track_id}
# ----------------------------------------------------
@router.delete("/{track_id}", status_code=204)
def delete_track(
    track_id: int,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    _get_owned_track(track_id, storage, current_user)
    storage.delete_track(track_id)
    logger.info("Track %s deleted", track_id)
    return Response(status_code=204)
