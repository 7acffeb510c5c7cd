from typing import List

from fastapi import APIRouter, Depends, HTTPException

from .. import schemas, dependencies
from ..storage import CatalogRepository

router = APIRouter(
    prefix="/api/projects",
    tags=["Projects"]
)


# [GET] /api/projects
# ----------------------------------------------------
@router.get("", response_model=List[schemas.Project])
def read_projects(storage: CatalogRepository = Depends(dependencies.get_storage)):
    return storage.get_all_projects()


# [GET] /api/projects/status/{status}
# ----------------------------------------------------
@router.get("/status/{status}", response_model=List[schemas.Project])
def read_projects_by_status(
    status: schemas.ProjectStatus,
    storage: CatalogRepository = Depends(dependencies.get_storage),
):
    """
    Active projects in one status: em_desenvolvimento, finalizado or lancado.
    """
    return storage.get_projects_by_status(status)


# [GET] /api/projects/search/{query}
# ----------------------------------------------------
@router.get("/search/{query}", response_model=List[schemas.Project])
def search_projects(query: str, storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Case-insensitive substring search over name, description and genres.
    """
    return storage.search_projects(query)


# [GET] /api/projects/{project_id}
# ----------------------------------------------------
@router.get("/{project_id}", response_model=schemas.Project)
def read_project(project_id: int, storage: CatalogRepository = Depends(dependencies.get_storage)):
    project = storage.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project
