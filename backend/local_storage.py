"""
Local filesystem buckets for the self-hosted provider.
Objects live under <base_dir>/<bucket>/<path> and are served back by
routes/storage_router.py under the same URL shape the hosted storage uses.
"""
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import quote

import structlog

from .errors import BackendError

logger = structlog.get_logger(__name__)

PUBLIC_PREFIX = "/storage/v1/object/public"


class LocalBucketStorage:
    def __init__(self, base_dir: str, public_base_url: str):
        self.base_dir = Path(base_dir)
        self.public_base_url = public_base_url.rstrip("/")

    def _get_path(self, bucket: str, key: str) -> Path:
        clean_key = key.lstrip("/").replace("\\", "/")
        parts = [p for p in clean_key.split("/") if p]
        if not parts or any(p == ".." for p in parts) or "/" in bucket or bucket in {"", ".", ".."}:
            raise BackendError(f"Invalid key: {key}", code="InvalidKey", status=400)
        return self.base_dir.joinpath(bucket, *parts)

    def upload(self, bucket: str, key: str, data: bytes) -> str:
        path = self._get_path(bucket, key)
        if path.exists():
            raise BackendError("The resource already exists", code="Duplicate", status=409)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        return key

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}{PUBLIC_PREFIX}/{quote(bucket)}/{quote(key.lstrip('/'))}"

    def resolve(self, bucket: str, key: str) -> Optional[Path]:
        """Filesystem path of an existing object, or None."""
        try:
            path = self._get_path(bucket, key)
        except BackendError:
            return None
        return path if path.is_file() else None

    def remove(self, bucket: str, keys: Iterable[str]) -> None:
        for key in keys:
            path = self._get_path(bucket, key)
            if path.exists():
                path.unlink()
            else:
                logger.info("bucket_object_missing", bucket=bucket, key=key)
