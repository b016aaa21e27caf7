# crud/files.py
from __future__ import annotations

import os
import time
from typing import Optional
from urllib.parse import unquote

import structlog
from slugify import slugify

from backend import BackendClient, BackendError
from config import settings
from crud.settings import allowed_file_types
from utils.errors import FieldError, FileTypeNotAllowed
from utils.saga import Saga

logger = structlog.get_logger(__name__)


def build_storage_path(project_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    """`{project_id}/{epoch_ms}_{slug}{ext}`; the slug keeps keys URL-safe."""
    stem, ext = os.path.splitext(os.path.basename(filename or ""))
    slug = slugify(stem) or "file"
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{project_id}/{now_ms}_{slug}{ext.lower()}"


def storage_path_of(row: dict, bucket: Optional[str] = None) -> Optional[str]:
    """Stored path, or the one recovered from a public URL for rows written before storage_path existed."""
    if row.get("storage_path"):
        return row["storage_path"]
    bucket = bucket or settings.STORAGE_BUCKET
    marker = f"/object/public/{bucket}/"
    url = (row.get("url") or "").split("?", 1)[0]
    if marker not in url:
        return None
    return unquote(url.split(marker, 1)[1]) or None


def check_file_type(filename: str, allowed: list[str]) -> None:
    ext = os.path.splitext(filename or "")[1].lower()
    if allowed and ext not in allowed:
        raise FileTypeNotAllowed(filename, allowed)


def list_files(client: BackendClient, project_id: str) -> list[dict]:
    return client.select("files", filters={"project_id": project_id}, order="uploaded_at", desc=True)


def upload_file(
    client: BackendClient,
    project_id: str,
    filename: str,
    data: bytes,
    content_type: Optional[str],
    user_id: str,
    activity_id: Optional[str] = None,
) -> dict:
    if not filename:
        raise FieldError("file", "Choose a file to upload")
    client.select("projects", "id", filters={"id": project_id}, single=True)
    check_file_type(filename, allowed_file_types(client))
    if activity_id and not client.select("activities", "id", filters={"id": activity_id, "project_id": project_id}):
        raise FieldError("activity_id", "Activity does not belong to this project")

    bucket = settings.STORAGE_BUCKET
    path = build_storage_path(project_id, filename)
    saga = Saga("upload_file", project_id=project_id, path=path)

    saga.step(
        "upload_blob",
        lambda: client.upload(bucket, path, data, content_type or "application/octet-stream"),
        lambda p: client.remove(bucket, [p]),
    )
    url = saga.step("public_url", lambda: client.get_public_url(bucket, path))
    row = saga.step(
        "insert_row",
        lambda: client.insert(
            "files",
            {
                "project_id": project_id,
                "activity_id": activity_id,
                "user_id": user_id,
                "name": filename,
                "url": url,
                "storage_path": path,
            },
        )[0],
    )
    logger.info("file_uploaded", project_id=project_id, file_id=row["id"], size=len(data))
    return row


def remove_blobs_best_effort(client: BackendClient, rows: list[dict]) -> None:
    bucket = settings.STORAGE_BUCKET
    paths = []
    for r in rows:
        path = storage_path_of(r, bucket)
        if path:
            paths.append(path)
        else:
            logger.warning("blob_path_unknown", file_id=r.get("id"), url=r.get("url"))
    if not paths:
        return
    try:
        client.remove(bucket, paths)
    except BackendError as e:
        logger.warning("blob_remove_failed", paths=paths, error=e.message)


def delete_file(client: BackendClient, project_id: str, file_id: str) -> dict:
    row = client.select("files", filters={"id": file_id, "project_id": project_id}, single=True)
    client.delete("files", {"id": file_id})
    remove_blobs_best_effort(client, [row])
    logger.info("file_deleted", project_id=project_id, file_id=file_id)
    return row
