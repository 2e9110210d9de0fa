"""
Object Storage — S3-compatible upload target for export artifacts.

Uploads are best-effort: every failure (storage not configured, network,
credentials) comes back as UploadResult(success=False, error=...) and the
local artifact stays authoritative.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from catalog_export.core.logging import setup_logger

logger = setup_logger("INFO")


@dataclass(frozen=True)
class UploadResult:
    success: bool
    key: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None


class ObjectStorage:
    """Thin wrapper around a boto3 S3 client bound to one bucket."""

    def __init__(
        self,
        bucket: str = "",
        public_base_url: str = "",
        client: Any = None,
        enabled: bool = True,
    ):
        """
        Args:
            bucket: Target bucket name
            public_base_url: CDN/base URL objects are publicly served from
            client: boto3 S3 client (None disables uploads)
            enabled: Master switch for uploads
        """
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.client = client
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings) -> "ObjectStorage":
        """Build from Settings; returns a disabled storage when S3 is not configured."""
        if not settings.s3_configured:
            logger.warning("⚠️ S3 storage not configured - exports will be kept locally only")
            return cls(public_base_url=settings.CDN_BASE_URL, enabled=False)

        client = boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
            config=Config(s3={"addressing_style": "path"}),
        )
        return cls(
            bucket=settings.S3_BUCKET,
            public_base_url=settings.CDN_BASE_URL,
            client=client,
            enabled=settings.S3_UPLOAD_ENABLED,
        )

    @property
    def available(self) -> bool:
        return self.enabled and self.client is not None and bool(self.bucket)

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def put_bytes(self, key: str, body: bytes, content_type: str) -> UploadResult:
        """Upload `body` under `key` with a public-read ACL."""
        if not self.available:
            return UploadResult(success=False, key=key, error="Object storage not available")

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"⚠️ Failed to upload {key} to S3: {str(e)}")
            return UploadResult(success=False, key=key, error=str(e))

        return UploadResult(success=True, key=key, url=self.public_url(key))

    def list_objects(self, prefix: str) -> List[Dict[str, Any]]:
        """
        List all objects under `prefix`, following pagination.

        Returns:
            [{"key", "size", "last_modified"}]; empty when storage is unavailable

        Raises:
            BotoCoreError/ClientError: listing failed (callers degrade to local files)
        """
        if not self.available:
            return []

        objects: List[Dict[str, Any]] = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, PaginationConfig={"PageSize": 1000}):
            for item in page.get("Contents", []):
                objects.append({
                    "key": item["Key"],
                    "size": item.get("Size", 0),
                    "last_modified": item.get("LastModified"),
                })
        return objects
