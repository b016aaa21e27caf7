from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from backend import Backend
from backend.local_storage import PUBLIC_PREFIX
from routes.auth_router import get_backend

router = APIRouter(prefix=PUBLIC_PREFIX, tags=["Storage"])


@router.get("/{bucket}/{path:path}")
def public_object(bucket: str, path: str, backend: Backend = Depends(get_backend)):
    # only the self-hosted provider keeps objects on this server
    storage = getattr(backend, "storage", None)
    found = storage.resolve(bucket, path) if storage is not None else None
    if found is None:
        raise HTTPException(status_code=404, detail="Object not found")
    return FileResponse(found)
