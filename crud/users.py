# crud/users.py
from __future__ import annotations

from typing import Optional

import structlog

from backend import AuthSession, BackendClient, BackendError, ROW_NOT_FOUND
from crud.notifications import notify_best_effort
from schemas.users import ROLES, ProfileUpdate, SignupIn
from utils.errors import FieldError
from utils.saga import Saga

logger = structlog.get_logger(__name__)


def _one(rows: list[dict], what: str) -> dict:
    if not rows:
        raise BackendError(f"{what} not found", code=ROW_NOT_FOUND, status=404)
    return rows[0]


def get_profile(client: BackendClient, user_id: str) -> Optional[dict]:
    rows = client.select("users", filters={"id": user_id})
    return rows[0] if rows else None


def create_profile(client: BackendClient, user_id: str, name: str, email: str) -> dict:
    return client.insert(
        "users",
        {"id": user_id, "name": name, "email": email, "role": "pending", "approved": False},
    )[0]


def signup(client: BackendClient, payload: SignupIn) -> AuthSession:
    """
    Auth identity, then the users row (pending, not approved). If the row
    cannot be written the identity is deleted again.
    """
    session = client.sign_up(payload.email, payload.password, {"name": payload.name})
    saga = Saga("signup", user_id=session.user.id)
    saga.on_rollback("delete_identity", lambda: client.delete_user(session.user.id))
    saga.step("insert_profile", lambda: create_profile(client, session.user.id, payload.name, payload.email))

    # the new account waits for approval on the login page
    if client.access_token:
        try:
            client.sign_out()
        except BackendError as e:
            logger.warning("signup_sign_out_failed", user_id=session.user.id, error=e.message)
    logger.info("user_signed_up", user_id=session.user.id)
    return session


def update_profile(client: BackendClient, user_id: str, payload: ProfileUpdate) -> dict:
    return _one(client.update("users", {"name": payload.name}, {"id": user_id}), "User")


def list_users(client: BackendClient) -> list[dict]:
    return client.select("users", order="created_at", desc=True)


def set_approval(client: BackendClient, user_id: str, approved: bool) -> dict:
    row = _one(client.update("users", {"approved": approved}, {"id": user_id}), "User")
    if approved:
        notify_best_effort(client, user_id, "Your account has been approved.", "/dashboard")
    logger.info("user_approval_changed", user_id=user_id, approved=approved)
    return row


def set_role(client: BackendClient, user_id: str, role: str) -> dict:
    if role not in ROLES:
        raise FieldError("role", f"Role must be one of: {', '.join(ROLES)}")
    row = _one(client.update("users", {"role": role}, {"id": user_id}), "User")
    logger.info("user_role_changed", user_id=user_id, role=role)
    return row
