from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from backend import AuthUser, BackendClient, BackendError
from crud import files as crud
from crud.settings import allowed_file_types
from routes.auth_router import backend_failure, get_client, require_user
from schemas.common import toast
from schemas.files import FileOut

router = APIRouter(prefix="/projects/{project_id}/files", tags=["Files"])


@router.get("")
def list_files(
    project_id: str,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        project = client.select("projects", "id,name", filters={"id": project_id}, single=True)
        rows = crud.list_files(client, project_id)
        allowed = allowed_file_types(client)
    except BackendError as e:
        raise backend_failure("Error loading files", e)
    return {
        "project": project,
        "files": [FileOut.model_validate(r) for r in rows],
        "allowed_file_types": allowed,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def upload_file(
    project_id: str,
    file: UploadFile = File(...),
    activity_id: Optional[str] = Form(None),
    client: BackendClient = Depends(get_client),
    user: AuthUser = Depends(require_user),
):
    data = file.file.read()
    try:
        row = crud.upload_file(
            client,
            project_id,
            file.filename or "",
            data,
            file.content_type,
            user.id,
            activity_id=activity_id or None,
        )
    except BackendError as e:
        raise backend_failure("Upload failed", e)
    return {"toast": toast("File uploaded", row["name"]), "file": FileOut.model_validate(row)}


@router.delete("/{file_id}")
def delete_file(
    project_id: str,
    file_id: str,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        row = crud.delete_file(client, project_id, file_id)
    except BackendError as e:
        raise backend_failure("Error deleting file", e)
    return {"toast": toast("File deleted", row["name"])}
