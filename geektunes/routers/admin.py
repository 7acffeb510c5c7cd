import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from .. import schemas, dependencies
from ..storage import CatalogRepository

logger = logging.getLogger(__name__)

# Every route here requires an administrator
router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(dependencies.get_current_admin)],
)


# --- Artists ---

# [GET] /api/admin/artists
# ----------------------------------------------------
@router.get("/artists", response_model=List[schemas.Artist])
def read_all_artists(storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Every artist, inactive ones included.
    """
    return storage.get_all_artists_admin()


# [POST] /api/admin/artists
# ----------------------------------------------------
@router.post("/artists", response_model=schemas.Artist, status_code=201)
def create_artist(
    artist: schemas.ArtistCreate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
):
    """
    Register a new artist.

    - **name**, **avatar**, **description**: required
    - **roles**, **musicalStyles**, **artistTypes**: default to empty lists
    - **socialLinks**: JSON object string, defaults to "{}"
    - **isActive**: defaults to true
    """
    new_artist = storage.create_artist(artist)
    logger.info("Artist %s created (%s)", new_artist.id, new_artist.name)
    return new_artist


# [PUT] /api/admin/artists/{artist_id}
# ----------------------------------------------------
@router.put("/artists/{artist_id}", response_model=schemas.Artist)
def update_artist(
    artist_id: int,
    artist: schemas.ArtistUpdate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
):
    """
    Update the fields present in the body; the rest are left as they are.
    """
    updated = storage.update_artist(artist_id, artist.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="Artist not found")
    logger.info("Artist %s updated", artist_id)
    return updated


# [DELETE] /api/admin/artists/{artist_id}
# ----------------------------------------------------
@router.delete("/artists/{artist_id}", status_code=204)
def delete_artist(artist_id: int, storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Soft delete: the artist disappears from public listings but keeps its id.
    """
    if not storage.delete_artist(artist_id):
        raise HTTPException(status_code=404, detail="Artist not found")
    logger.info("Artist %s deactivated", artist_id)
    return Response(status_code=204)


# --- Projects ---

# [POST] /api/admin/projects
# ----------------------------------------------------
@router.post("/projects", response_model=schemas.Project, status_code=201)
def create_project(
    project: schemas.ProjectCreate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
):
    """
    Register a new project. **collaborators** are artist ids and must exist.
    """
    new_project = storage.create_project(project)
    logger.info("Project %s created (%s)", new_project.id, new_project.name)
    return new_project


# [PUT] /api/admin/projects/{project_id}
# ----------------------------------------------------
@router.put("/projects/{project_id}", response_model=schemas.Project)
def update_project(
    project_id: int,
    project: schemas.ProjectUpdate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
):
    updated = storage.update_project(project_id, project.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="Project not found")
    logger.info("Project %s updated", project_id)
    return updated


# [DELETE] /api/admin/projects/{project_id}
# ----------------------------------------------------
@router.delete("/projects/{project_id}", status_code=204)
def delete_project(project_id: int, storage: CatalogRepository = Depends(dependencies.get_storage)):
    if not storage.delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    logger.info("Project %s deactivated", project_id)
    return Response(status_code=204)


# --- Notifications ---

# [GET] /api/admin/notifications
# ----------------------------------------------------
@router.get("/notifications", response_model=List[schemas.Notification])
def read_all_notifications(storage: CatalogRepository = Depends(dependencies.get_storage)):
    return storage.get_all_notifications()


# [POST] /api/admin/notifications
# ----------------------------------------------------
@router.post("/notifications", response_model=schemas.Notification, status_code=201)
def create_notification(
    notification: schemas.NotificationCreate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
):
    """
    Publish a notification.

    - **type**: info, success, warning, error, system or mention
    - **targetType**: all (default), specific_user (needs **userId**) or artists_only
    """
    if notification.target_type == "specific_user" and not notification.user_id:
        raise HTTPException(status_code=400, detail="userId is required for specific_user notifications")
    new_notification = storage.create_notification(notification)
    logger.info("Notification %s created", new_notification.id)
    return new_notification


# [DELETE] /api/admin/notifications/{notification_id}
# ----------------------------------------------------
@router.delete("/notifications/{notification_id}", status_code=204)
def delete_notification(notification_id: int, storage: CatalogRepository = Depends(dependencies.get_storage)):
    if not storage.delete_notification(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return Response(status_code=204)


# --- Users ---

# [GET] /api/admin/users
# ----------------------------------------------------
@router.get("/users", response_model=List[schemas.User])
def read_all_users(storage: CatalogRepository = Depends(dependencies.get_storage)):
    return storage.get_all_users()


# [PUT] /api/admin/users/{user_id}/admin
# ----------------------------------------------------
@router.put("/users/{user_id}/admin", response_model=schemas.User)
def update_user_admin_status(
    user_id: str,
    body: schemas.AdminStatusUpdate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
):
    """
    Grant or revoke the administrator flag.
    """
    user = storage.update_user_admin_status(user_id, body.is_admin)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("User %s admin=%s", user.username, user.is_admin)
    return user
