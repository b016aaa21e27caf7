# crud/projects.py
from __future__ import annotations

from typing import Optional

import structlog

from backend import BackendClient, BackendError, ROW_NOT_FOUND
from schemas.projects import ActivityIn, ProjectCreate, ProjectUpdate
from utils.csv_import import total_budget
from utils.errors import Forbidden
from utils.saga import Saga
from crud.files import list_files, remove_blobs_best_effort
from crud.comments import list_comments

logger = structlog.get_logger(__name__)

PROJECT_FIELDS = ("name", "description", "start_date", "end_date", "vendor", "status", "completion_percentage")


def get_project(client: BackendClient, project_id: str) -> dict:
    return client.select("projects", filters={"id": project_id}, single=True)


def list_projects(client: BackendClient, q: Optional[str] = None) -> list[dict]:
    rows = client.select("projects", order="created_at", desc=True)
    if q and q.strip():
        needle = q.strip().lower()
        rows = [
            r for r in rows
            if needle in (r.get("name") or "").lower() or needle in (r.get("vendor") or "").lower()
        ]
    return rows


def list_activities(client: BackendClient, project_id: str) -> list[dict]:
    return client.select("activities", filters={"project_id": project_id}, order="created_at")


def project_detail(client: BackendClient, project_id: str) -> dict:
    project = get_project(client, project_id)
    activities = list_activities(client, project_id)
    return {
        **project,
        "activities": activities,
        "files": list_files(client, project_id),
        "comments": list_comments(client, project_id),
        "total_budget": total_budget(activities),
    }


def _insert_activities(client: BackendClient, project_id: str, activities: list[ActivityIn]) -> list[dict]:
    if not activities:
        return []
    return client.insert("activities", [a.to_row(project_id) for a in activities])


def _restore_activities(client: BackendClient, project_id: str, rows: list[dict]) -> None:
    client.delete("activities", {"project_id": project_id})
    if rows:
        client.insert("activities", rows)


def _rewrite_project(
    client: BackendClient,
    saga: Saga,
    previous: dict,
    fields: dict,
    activities: list[ActivityIn],
) -> tuple[dict, list[dict]]:
    """
    Overwrite an existing project's fields and replace its activities. On
    failure the previous fields and activity rows are put back; the project
    itself is never deleted.
    """
    project_id = previous["id"]
    old_activities = list_activities(client, project_id)

    rows = saga.step(
        "update_project",
        lambda: client.update("projects", fields, {"id": project_id}),
        lambda _: client.update("projects", {k: previous.get(k) for k in PROJECT_FIELDS}, {"id": project_id}),
    )
    if not rows:
        raise BackendError("Project not found", code=ROW_NOT_FOUND, status=404)

    saga.step(
        "delete_activities",
        lambda: client.delete("activities", {"project_id": project_id}),
        lambda _: _restore_activities(client, project_id, old_activities),
    )
    inserted = saga.step(
        "insert_activities",
        lambda: _insert_activities(client, project_id, activities),
    )
    return rows[0], inserted


def create_project(client: BackendClient, payload: ProjectCreate, user_id: str) -> dict:
    """
    Project row first, then its activities. If the activities fail the
    project is deleted again. With a request_id the call is resumable: a
    project left over from an earlier attempt is rewritten in place, and a
    failed rewrite restores it rather than deleting it.
    """
    saga = Saga("create_project", user_id=user_id, request_id=payload.request_id)
    fields = payload.project_fields()

    existing = []
    if payload.request_id:
        existing = client.select("projects", filters={"id": payload.request_id})
    if existing:
        if existing[0].get("user_id") != user_id:
            raise Forbidden("That request id belongs to another user's project")
        saga.log.info("create_project_resumed", project_id=payload.request_id)
        project, activities = _rewrite_project(client, saga, existing[0], fields, payload.activities)
    else:
        row = {**fields, "user_id": user_id}
        if payload.request_id:
            row["id"] = payload.request_id
        project = saga.step(
            "insert_project",
            lambda: client.insert("projects", row)[0],
            lambda p: client.delete("projects", {"id": p["id"]}),
        )
        activities = saga.step(
            "insert_activities",
            lambda: _insert_activities(client, project["id"], payload.activities),
        )

    logger.info("project_created", project_id=project["id"], activities=len(activities))
    return {**project, "activities": activities}


def update_project(client: BackendClient, project_id: str, payload: ProjectUpdate) -> dict:
    """Fields first, then the activity list is replaced wholesale (old ids are dropped)."""
    previous = get_project(client, project_id)
    saga = Saga("update_project", project_id=project_id)
    project, activities = _rewrite_project(
        client, saga, previous, payload.project_fields(), payload.activities
    )
    logger.info("project_updated", project_id=project_id, activities=len(activities))
    return {**project, "activities": activities}


def delete_project(client: BackendClient, project_id: str) -> dict:
    files = list_files(client, project_id)
    deleted = client.delete("projects", {"id": project_id})
    if not deleted:
        raise BackendError("Project not found", code=ROW_NOT_FOUND, status=404)
    # rows are gone with the cascade; blobs are removed after, best-effort
    remove_blobs_best_effort(client, files)
    logger.info("project_deleted", project_id=project_id, files=len(files))
    return deleted[0]
