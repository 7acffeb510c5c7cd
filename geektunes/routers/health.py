from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from .. import dependencies
from ..exceptions import CatalogError
from ..storage import CatalogRepository

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
def health_check(storage: CatalogRepository = Depends(dependencies.get_storage)):
    """
    Health check for load balancers and monitoring.
    """
    checks = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {},
    }

    # Check the store
    try:
        storage.is_empty()
        checks["services"]["storage"] = "ok"
    except CatalogError as e:
        checks["services"]["storage"] = f"error: {e.message}"
        checks["status"] = "unhealthy"

    return checks
