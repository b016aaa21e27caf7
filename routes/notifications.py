from fastapi import APIRouter, Depends

from backend import AuthUser, BackendClient, BackendError
from crud import notifications as crud
from routes.auth_router import backend_failure, get_client, require_user
from schemas.common import toast
from schemas.notifications import NotificationOut

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
def list_notifications(client: BackendClient = Depends(get_client), user: AuthUser = Depends(require_user)):
    try:
        rows = crud.list_notifications(client, user.id)
    except BackendError as e:
        raise backend_failure("Error loading notifications", e)
    return {
        "notifications": [NotificationOut.model_validate(r) for r in rows],
        "unread": sum(1 for r in rows if not r.get("read")),
    }


@router.get("/unread-count")
def unread_count(client: BackendClient = Depends(get_client), user: AuthUser = Depends(require_user)):
    try:
        return {"unread": crud.unread_count(client, user.id)}
    except BackendError as e:
        raise backend_failure("Error loading notifications", e)


@router.post("/read-all")
def mark_all_read(client: BackendClient = Depends(get_client), user: AuthUser = Depends(require_user)):
    try:
        n = crud.mark_all_read(client, user.id)
    except BackendError as e:
        raise backend_failure("Error updating notifications", e)
    return {"toast": toast("All notifications marked as read"), "updated": n}


@router.post("/{notification_id}/read")
def mark_read(
    notification_id: str,
    client: BackendClient = Depends(get_client),
    user: AuthUser = Depends(require_user),
):
    try:
        row = crud.mark_read(client, user.id, notification_id)
    except BackendError as e:
        raise backend_failure("Error updating notification", e)
    return {"notification": NotificationOut.model_validate(row)}
