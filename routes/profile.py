from fastapi import APIRouter, Depends

from backend import AuthUser, BackendClient, BackendError
from crud.users import get_profile, update_profile
from routes.auth_router import backend_failure, get_client, require_user
from schemas.common import toast
from schemas.users import ProfileUpdate, UserOut

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("")
def read_profile(client: BackendClient = Depends(get_client), user: AuthUser = Depends(require_user)):
    try:
        row = get_profile(client, user.id)
    except BackendError as e:
        raise backend_failure("Error loading profile", e)
    return {
        "email": user.email,
        "profile": UserOut.model_validate(row) if row else None,
    }


@router.put("")
def save_profile(
    payload: ProfileUpdate,
    client: BackendClient = Depends(get_client),
    user: AuthUser = Depends(require_user),
):
    try:
        row = update_profile(client, user.id, payload)
    except BackendError as e:
        raise backend_failure("Error updating profile", e)
    return {"toast": toast("Profile updated"), "profile": UserOut.model_validate(row)}
