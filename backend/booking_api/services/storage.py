"""
JSON backup of processed bookings to S3-compatible object storage.
A failed upload is reported, never raised.
"""

from __future__ import annotations
from functools import lru_cache
from typing import Any, Dict, Optional
import json
import logging

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from booking_api.core.config import settings

logger = logging.getLogger(__name__)


class BackupStorage:
    """Writes JSON documents under ``{folder}/{file_name}.json`` in the backup bucket."""

    def __init__(self, client=None, bucket: Optional[str] = None, enabled: Optional[bool] = None):
        self.enabled = settings.backup_enabled if enabled is None else enabled
        self.bucket = bucket or settings.backup_bucket
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.s3_endpoint_url,  # e.g. http://minio:9000
                aws_access_key_id=settings.s3_access_key,
                aws_secret_access_key=settings.s3_secret_key,
                region_name=settings.s3_region,
                config=BotoConfig(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                ),
            )
        return self._client

    def save_json(self, data: Any, file_name: str, folder: str = "") -> Dict[str, Any]:
        if not self.enabled or not self.bucket:
            return {"success": False, "error": "disabled"}

        name = file_name if file_name.endswith(".json") else f"{file_name}.json"
        key = f"{folder.strip('/')}/{name}" if folder else name
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=json.dumps(data, ensure_ascii=False, default=str).encode("utf-8"),
                ContentType="application/json",
            )
        except (EndpointConnectionError, ClientError, BotoCoreError) as e:
            logger.error(f"Backup upload failed for {key}: {e}")
            return {"success": False, "error": str(e)}

        logger.info(f"Backup saved: s3://{self.bucket}/{key}")
        return {"success": True, "path": key}


@lru_cache()
def get_storage() -> BackupStorage:
    """FastAPI dependency; one storage client per process."""
    return BackupStorage()
