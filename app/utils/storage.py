"""
Google Cloud Storage helpers for companion media uploads.
"""

import uuid

from google.cloud import storage as gcs_storage

from app.config import get_settings

_DEFAULT_EXTENSION = "jpg"


def get_storage_client():
    return gcs_storage.Client(project=get_settings().GCP_PROJECT_ID or None)


def get_bucket():
    client = get_storage_client()
    return client.bucket(get_settings().GCS_BUCKET_NAME)


def media_path(user_id: uuid.UUID, kind: str, filename: str | None) -> str:
    """Object path for a new upload: ``companions/{user_id}/{kind}/{random}.{ext}``."""
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else _DEFAULT_EXTENSION
    return f"companions/{user_id}/{kind}/{uuid.uuid4().hex}.{ext}"


def upload_file(path: str, file_bytes: bytes, content_type: str = "application/octet-stream") -> str:
    """Upload file to GCS bucket. Returns the GCS URI."""
    bucket = get_bucket()
    blob = bucket.blob(path)
    blob.upload_from_string(file_bytes, content_type=content_type)
    return f"gs://{bucket.name}/{path}"
