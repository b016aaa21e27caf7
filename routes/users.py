from fastapi import APIRouter, Depends

from backend import BackendClient, BackendError
from crud import users as crud
from routes.auth_router import backend_failure, get_client, require_roles
from schemas.common import toast
from schemas.users import ROLES, ApprovalUpdate, RoleUpdate, UserOut

router = APIRouter(prefix="/admin/users", tags=["User Management"])

ADMIN_GUARD = Depends(require_roles("admin"))


@router.get("")
def list_users(client: BackendClient = Depends(get_client), _admin: dict = ADMIN_GUARD):
    try:
        rows = crud.list_users(client)
    except BackendError as e:
        raise backend_failure("Error loading users", e)
    return {"users": [UserOut.model_validate(r) for r in rows], "roles": list(ROLES)}


@router.post("/{user_id}/approval")
def set_approval(
    user_id: str,
    payload: ApprovalUpdate,
    client: BackendClient = Depends(get_client),
    _admin: dict = ADMIN_GUARD,
):
    try:
        row = crud.set_approval(client, user_id, payload.approved)
    except BackendError as e:
        raise backend_failure("Error updating user", e)
    title = "User approved" if payload.approved else "User approval revoked"
    return {"toast": toast(title, row["email"]), "user": UserOut.model_validate(row)}


@router.put("/{user_id}/role")
def set_role(
    user_id: str,
    payload: RoleUpdate,
    client: BackendClient = Depends(get_client),
    _admin: dict = ADMIN_GUARD,
):
    try:
        row = crud.set_role(client, user_id, payload.role)
    except BackendError as e:
        raise backend_failure("Error updating role", e)
    return {"toast": toast("Role updated", f"{row['email']} is now {row['role']}"), "user": UserOut.model_validate(row)}
