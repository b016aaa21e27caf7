from fastapi import APIRouter, Depends, status

from backend import AuthUser, BackendClient, BackendError
from crud import comments as crud
from routes.auth_router import backend_failure, get_client, require_user
from schemas.comments import CommentIn, CommentOut
from schemas.common import toast

router = APIRouter(prefix="/projects/{project_id}/comments", tags=["Comments"])


@router.get("")
def list_comments(
    project_id: str,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        client.select("projects", "id", filters={"id": project_id}, single=True)
        rows = crud.list_comments(client, project_id)
    except BackendError as e:
        raise backend_failure("Error loading comments", e)
    return {"comments": [CommentOut.model_validate(r) for r in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_comment(
    project_id: str,
    payload: CommentIn,
    client: BackendClient = Depends(get_client),
    user: AuthUser = Depends(require_user),
):
    try:
        row = crud.add_comment(client, project_id, payload, user.id)
    except BackendError as e:
        raise backend_failure("Error posting comment", e)
    return {"toast": toast("Comment posted"), "comment": CommentOut.model_validate(row)}


@router.delete("/{comment_id}")
def delete_comment(
    project_id: str,
    comment_id: str,
    client: BackendClient = Depends(get_client),
    user: AuthUser = Depends(require_user),
):
    try:
        crud.delete_comment(client, project_id, comment_id, user.id)
    except BackendError as e:
        raise backend_failure("Error deleting comment", e)
    return {"toast": toast("Comment deleted")}
