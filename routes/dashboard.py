from fastapi import APIRouter, Depends

from backend import AuthUser, BackendClient, BackendError
from crud.dashboard import dashboard
from crud.users import get_profile
from routes.auth_router import backend_failure, get_client, require_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def read_dashboard(client: BackendClient = Depends(get_client), user: AuthUser = Depends(require_user)):
    try:
        data = dashboard(client, user.id)
        profile = get_profile(client, user.id)
    except BackendError as e:
        raise backend_failure("Error loading dashboard", e)
    return {
        "user": {"id": user.id, "email": user.email},
        # not enforced by the guard; the client decides how to present it
        "approved": bool(profile and profile.get("approved")),
        "role": profile.get("role") if profile else None,
        **data,
    }
