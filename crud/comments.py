# crud/comments.py
from __future__ import annotations

import structlog

from backend import BackendClient
from crud.notifications import notify_best_effort
from schemas.comments import CommentIn
from utils.errors import FieldError, Forbidden

logger = structlog.get_logger(__name__)


def _thread(rows: list[dict]) -> list[dict]:
    """Nest replies under their parents; a reply whose parent is gone becomes a root."""
    by_id = {r["id"]: {**r, "replies": []} for r in rows}
    roots = []
    for r in rows:
        node = by_id[r["id"]]
        parent = by_id.get(r.get("parent_comment_id"))
        if parent is not None and parent is not node:
            parent["replies"].append(node)
        else:
            roots.append(node)
    return roots


def list_comments(client: BackendClient, project_id: str) -> list[dict]:
    rows = client.select("comments", filters={"project_id": project_id}, order="created_at")
    if rows:
        names = {u["id"]: u.get("name") or u.get("email") for u in client.select("users", "id,name,email")}
        for r in rows:
            r["author_name"] = names.get(r.get("user_id"))
    return _thread(rows)


def add_comment(client: BackendClient, project_id: str, payload: CommentIn, user_id: str) -> dict:
    project = client.select("projects", "id,name,user_id", filters={"id": project_id}, single=True)

    if payload.parent_comment_id and not client.select(
        "comments", "id", filters={"id": payload.parent_comment_id, "project_id": project_id}
    ):
        raise FieldError("parent_comment_id", "You can only reply to a comment on this project")
    if payload.activity_id and not client.select(
        "activities", "id", filters={"id": payload.activity_id, "project_id": project_id}
    ):
        raise FieldError("activity_id", "Activity does not belong to this project")

    row = client.insert(
        "comments",
        {
            "project_id": project_id,
            "activity_id": payload.activity_id,
            "user_id": user_id,
            "content": payload.content,
            "parent_comment_id": payload.parent_comment_id,
        },
    )[0]

    owner = project.get("user_id")
    if owner and owner != user_id:
        notify_best_effort(
            client, owner, f"New comment on project {project['name']}", f"/projects/{project_id}"
        )
    logger.info("comment_added", project_id=project_id, comment_id=row["id"])
    return row


def delete_comment(client: BackendClient, project_id: str, comment_id: str, user_id: str) -> dict:
    row = client.select("comments", filters={"id": comment_id, "project_id": project_id}, single=True)
    if row.get("user_id") != user_id:
        raise Forbidden("You can only delete your own comments")
    client.delete("comments", {"id": comment_id})
    return row
