"""Helpers for persisting uploaded attachments to the configured backend."""

from __future__ import annotations

import io
import os
import re
from typing import Optional
from uuid import uuid4

from minio import Minio

# purpose: centralize object storage reads and writes for entity attachments
# status: active

_MINIO_CLIENT: Optional[Minio] = None


def _get_upload_dir() -> str:
    """Return the configured upload directory, creating it when needed."""

    upload_dir = os.getenv("UPLOAD_DIR", "uploaded_files")
    os.makedirs(upload_dir, exist_ok=True)
    return upload_dir


def _ensure_minio_client() -> Optional[Minio]:
    """Initialize and return a MinIO client when configuration is present."""

    global _MINIO_CLIENT
    endpoint = os.getenv("MINIO_ENDPOINT", "").strip()
    access_key = os.getenv("MINIO_ACCESS_KEY")
    secret_key = os.getenv("MINIO_SECRET_KEY")
    bucket = os.getenv("MINIO_BUCKET", "uploads")
    if not endpoint or not access_key or not secret_key:
        return None
    if _MINIO_CLIENT is None:
        client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=endpoint.startswith("https"),
        )
        if not client.bucket_exists(bucket):
            client.make_bucket(bucket)
        _MINIO_CLIENT = client
    return _MINIO_CLIENT


def _build_object_name(namespace: str | None, filename: str) -> str:
    """Construct a normalized storage object key within an optional namespace."""

    safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", os.path.basename(filename)) or "upload.bin"
    if not namespace:
        return f"{uuid4()}_{safe_name}"
    clean_namespace = re.sub(r"[^A-Za-z0-9/_.-]", "_", namespace).strip("/")
    return f"{clean_namespace}/{uuid4()}_{safe_name}"


def save_binary_payload(
    data: bytes,
    filename: str,
    *,
    content_type: str = "application/octet-stream",
    namespace: str | None = None,
) -> tuple[str, int]:
    """Persist binary data and return ``(storage_path, size)``."""

    object_name = _build_object_name(namespace, filename)
    client = _ensure_minio_client()
    if client:
        bucket = os.getenv("MINIO_BUCKET", "uploads")
        client.put_object(
            bucket,
            object_name,
            io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        return f"s3://{bucket}/{object_name}", len(data)

    upload_dir = _get_upload_dir()
    if namespace:
        namespace_dir = os.path.join(upload_dir, *namespace.strip("/").split("/"))
        os.makedirs(namespace_dir, exist_ok=True)
        storage_path = os.path.join(namespace_dir, os.path.basename(object_name))
    else:
        storage_path = os.path.join(upload_dir, os.path.basename(object_name))
    with open(storage_path, "wb") as handle:
        handle.write(data)
    return storage_path, len(data)


def _split_s3_path(storage_path: str) -> tuple[str, str]:
    _, _, bucket, *key_parts = storage_path.split("/", 3)
    if not key_parts or not key_parts[-1]:
        raise FileNotFoundError("Invalid s3 storage path")
    return bucket, key_parts[-1]


def load_binary_payload(storage_path: str) -> bytes:
    """Retrieve the raw bytes stored at ``storage_path``."""

    if storage_path.startswith("s3://"):
        client = _ensure_minio_client()
        if not client:
            raise FileNotFoundError("Object storage client unavailable for s3 path")
        bucket, object_name = _split_s3_path(storage_path)
        response = client.get_object(bucket, object_name)
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    with open(storage_path, "rb") as handle:
        return handle.read()


def delete_payload(storage_path: str) -> None:
    if storage_path.startswith("s3://"):
        client = _ensure_minio_client()
        if not client:
            raise FileNotFoundError("Object storage client unavailable for s3 path")
        bucket, object_name = _split_s3_path(storage_path)
        client.remove_object(bucket, object_name)
        return
    if os.path.exists(storage_path):
        os.remove(storage_path)
