# crud/settings.py
from __future__ import annotations

from backend import BackendClient
from config import settings
from schemas.settings import SettingsIn


def default_settings() -> dict:
    return {
        "id": settings.SETTINGS_ROW_ID,
        "allowed_file_types": settings.ALLOWED_FILE_TYPES_DEFAULT,
        "project_types": [],
        "vendor_list": [],
        "updated_at": None,
    }


def get_settings(client: BackendClient) -> dict:
    """The singleton row, with defaults filled in when it (or a column) is missing."""
    rows = client.select("settings", filters={"id": settings.SETTINGS_ROW_ID})
    out = default_settings()
    if rows:
        for k, v in rows[0].items():
            if k in out and v not in (None, ""):
                out[k] = v
    return out


def allowed_file_types(client: BackendClient) -> list[str]:
    raw = get_settings(client)["allowed_file_types"]
    return [t.strip().lower() for t in raw.split(",") if t.strip()]


def save_settings(client: BackendClient, payload: SettingsIn) -> dict:
    values = payload.model_dump()
    if not values["allowed_file_types"]:
        values["allowed_file_types"] = settings.ALLOWED_FILE_TYPES_DEFAULT

    rows = client.update("settings", values, {"id": settings.SETTINGS_ROW_ID})
    if not rows:
        rows = client.insert("settings", {"id": settings.SETTINGS_ROW_ID, **values})
    return {**default_settings(), **rows[0]}


def vendor_options(client: BackendClient) -> list[str]:
    names = {r["name"] for r in client.select("vendors", "name") if r.get("name")}
    names.update(get_settings(client)["vendor_list"] or [])
    return sorted(names, key=str.lower)
