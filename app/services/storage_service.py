"""
Attachment storage on Cloudflare R2.
Validates and uploads files sent with lead submissions.
"""

import logging
import secrets
import time
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
PRESIGNED_URL_EXPIRATION = 7 * 24 * 3600  # R2 maximum
ALLOWED_CONTENT_TYPES = [
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
    "video/mp4",
    "video/quicktime",
    "video/x-msvideo",
    "application/pdf",
    "text/plain",
]


class StorageError(Exception):
    """Attachment could not be validated or stored."""


def is_configured() -> bool:
    return bool(R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY)


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def attachment_type(content_type: Optional[str]) -> Optional[str]:
    """photo / video classification stored on the attachment row"""
    if not content_type:
        return None
    if content_type.startswith("image/"):
        return "photo"
    if content_type.startswith("video/"):
        return "video"
    return None


def validate_file(size_bytes: int, content_type: str) -> None:
    if size_bytes > MAX_FILE_SIZE_BYTES:
        raise StorageError(
            f"File size ({size_bytes / (1024 * 1024):.1f}MB) exceeds maximum allowed size "
            f"({MAX_FILE_SIZE_BYTES // (1024 * 1024)}MB)"
        )
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise StorageError(f"File type '{content_type}' is not allowed")


def generate_attachment_key(filename: str, lead_id: Optional[int] = None) -> str:
    """
    Format: leads/{lead_id}/{timestamp_ms}_{random}.{ext}
    """
    base_path = f"leads/{lead_id}" if lead_id else "uploads"
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    safe_extension = "".join(c for c in extension if c.isalnum())[:10] or "bin"
    return f"{base_path}/{int(time.time() * 1000)}_{secrets.token_hex(3)}.{safe_extension}"


def public_url_for(key: str) -> str:
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"
    return get_r2_client().generate_presigned_url(
        "get_object",
        Params={"Bucket": R2_BUCKET_NAME, "Key": key},
        ExpiresIn=PRESIGNED_URL_EXPIRATION,
    )


def upload_attachment(
    file_content: bytes, filename: str, content_type: str, lead_id: Optional[int] = None
) -> str:
    """
    Upload a lead attachment and return the URL it can be fetched from.

    Raises:
        StorageError: On validation failure, missing configuration or an R2 error
    """
    validate_file(len(file_content), content_type)

    if not is_configured():
        raise StorageError("Attachment storage is not configured")

    key = generate_attachment_key(filename, lead_id)
    try:
        get_r2_client().put_object(
            Bucket=R2_BUCKET_NAME,
            Key=key,
            Body=file_content,
            ContentType=content_type,
            CacheControl="max-age=3600",
        )
        url = public_url_for(key)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to upload {filename} to R2: {e}")
        raise StorageError(f"Upload failed: {e}") from e

    logger.info(f"📎 Uploaded attachment {key} ({len(file_content)} bytes)")
    return url
