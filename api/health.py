from fastapi import APIRouter

from auth.decorators import authorize
from dependencies import BlobStoreDep, RecordStoreDep, SettingsDep

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/status",
    summary="Application health status",
    description="Basic health check endpoint"
)
def health_status(settings: SettingsDep):
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "storage_backend": settings.storage_backend,
    }


@router.get("/stores",
    summary="Storage connectivity check",
    description="Check that the blob store and record store are configured and reachable"
)
@authorize(admin_required=True)
async def store_health(blob_store: BlobStoreDep = None, record_store: RecordStoreDep = None):
    blob_ok = blob_store is not None and await blob_store.is_healthy()
    record_ok = record_store is not None and await record_store.ping()
    return {
        "status": "ok" if blob_ok and record_ok else "degraded",
        "blob_store": {"configured": blob_store is not None, "reachable": blob_ok},
        "record_store": {"configured": record_store is not None, "reachable": record_ok},
    }
