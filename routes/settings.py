from fastapi import APIRouter, Depends

from backend import BackendClient, BackendError
from crud import settings as crud
from routes.auth_router import backend_failure, get_client, require_roles
from schemas.common import toast
from schemas.settings import SettingsIn, SettingsOut

router = APIRouter(prefix="/admin/settings", tags=["Settings"])


@router.get("", response_model=SettingsOut)
def read_settings(client: BackendClient = Depends(get_client), _admin: dict = Depends(require_roles("admin"))):
    try:
        return crud.get_settings(client)
    except BackendError as e:
        raise backend_failure("Error loading settings", e)


@router.put("")
def save_settings(
    payload: SettingsIn,
    client: BackendClient = Depends(get_client),
    _admin: dict = Depends(require_roles("admin")),
):
    try:
        row = crud.save_settings(client, payload)
    except BackendError as e:
        raise backend_failure("Error saving settings", e)
    return {"toast": toast("Settings saved"), "settings": SettingsOut.model_validate(row)}
