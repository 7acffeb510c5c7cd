from typing import List

from fastapi import APIRouter, Depends

from .. import schemas, dependencies
from ..storage import CatalogRepository

router = APIRouter(
    prefix="/api/notifications",
    tags=["Notifications"]
)


# [GET] /api/notifications
# ----------------------------------------------------
@router.get("", response_model=List[schemas.Notification])
def read_active_notifications(storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Active notifications, newest first. Public.
    """
    return storage.get_active_notifications()
