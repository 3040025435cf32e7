"""
S3/MinIO storage provider for recordings.

Key structure:
    recordings/{user_id}/{recording_id}.{ext}        recording bytes
    recordings/{user_id}/{recording_id}.meta.json    RecordingMetadata
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from mock_interview.core.config import Settings, get_settings
from mock_interview.core.errors import RemoteError
from mock_interview.models.recording import RecordingMetadata
from mock_interview.models.session import utcnow
from mock_interview.providers.recording_storage.base import (
    RecordingStorageProvider,
    extension_for,
    new_recording_id,
)

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta.json"


def _is_not_found(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code")
    return code in ("404", "NoSuchKey", "NotFound")


class S3RecordingStorage(RecordingStorageProvider):
    """
    S3-compatible recording storage (works with MinIO, AWS S3, etc.)
    """

    def __init__(self, settings: Optional[Settings] = None, client=None):
        self.settings = settings or get_settings()
        self._bucket = self.settings.s3_bucket_name
        self._client = client or boto3.client(
            "s3",
            endpoint_url=self.settings.s3_endpoint_url,
            aws_access_key_id=self.settings.s3_access_key,
            aws_secret_access_key=self.settings.s3_secret_key,
            region_name=self.settings.s3_region,
            config=Config(signature_version="s3v4"),
        )

    async def initialize(self) -> None:
        """Create the bucket if it doesn't exist."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError as e:
            if not _is_not_found(e):
                raise RemoteError(f"S3 bucket check failed: {e}")
            self._client.create_bucket(Bucket=self._bucket)
            logger.info(f"Created bucket: {self._bucket}")
        logger.info(f"S3 recording storage initialized with bucket: {self._bucket}")

    @staticmethod
    def _prefix(user_id: str) -> str:
        return f"recordings/{user_id}/"

    def _meta_key(self, user_id: str, recording_id: str) -> str:
        return f"{self._prefix(user_id)}{recording_id}{META_SUFFIX}"

    def _blob_key(self, user_id: str, meta: RecordingMetadata) -> str:
        return f"{self._prefix(user_id)}{meta.recording_id}.{extension_for(meta.mime_type)}"

    async def store(
        self,
        user_id: str,
        data: bytes,
        mime_type: str,
        session_id: Optional[str] = None,
        started_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> RecordingMetadata:
        meta = RecordingMetadata(
            recording_id=new_recording_id(),
            user_id=user_id,
            session_id=session_id,
            mime_type=mime_type,
            size_bytes=len(data),
            started_at=started_at,
            stored_at=utcnow(),
            custom_metadata=metadata or {},
        )
        blob_key = self._blob_key(user_id, meta)

        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=blob_key,
                Body=data,
                ContentType=mime_type,
            )
            self._client.put_object(
                Bucket=self._bucket,
                Key=self._meta_key(user_id, meta.recording_id),
                Body=meta.model_dump_json().encode("utf-8"),
                ContentType="application/json",
            )
        except ClientError as e:
            logger.error(f"Failed to upload recording {blob_key}: {e}")
            raise RemoteError(f"S3 upload failed: {e}")

        logger.info(f"Uploaded recording to S3: {blob_key} ({len(data)} bytes)")
        return meta

    async def get_metadata(self, user_id: str, recording_id: str) -> Optional[RecordingMetadata]:
        try:
            response = self._client.get_object(
                Bucket=self._bucket,
                Key=self._meta_key(user_id, recording_id),
            )
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise RemoteError(f"S3 metadata read failed: {e}")
        return RecordingMetadata.model_validate_json(response["Body"].read())

    async def retrieve(self, user_id: str, recording_id: str) -> Optional[bytes]:
        meta = await self.get_metadata(user_id, recording_id)
        if meta is None:
            return None

        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._blob_key(user_id, meta))
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise RemoteError(f"S3 download failed: {e}")
        return response["Body"].read()

    async def delete(self, user_id: str, recording_id: str) -> bool:
        meta = await self.get_metadata(user_id, recording_id)
        if meta is None:
            return False

        try:
            self._client.delete_object(Bucket=self._bucket, Key=self._blob_key(user_id, meta))
            self._client.delete_object(Bucket=self._bucket, Key=self._meta_key(user_id, recording_id))
        except ClientError as e:
            logger.error(f"Failed to delete recording {recording_id}: {e}")
            raise RemoteError(f"S3 delete failed: {e}")

        logger.info(f"Deleted recording from S3: {recording_id}")
        return True

    async def list_recordings(self, user_id: str, limit: int = 100) -> List[RecordingMetadata]:
        recordings = []
        paginator = self._client.get_paginator("list_objects_v2")

        try:
            for page in paginator.paginate(Bucket=self._bucket, Prefix=self._prefix(user_id)):
                for item in page.get("Contents", []):
                    if not item["Key"].endswith(META_SUFFIX):
                        continue
                    response = self._client.get_object(Bucket=self._bucket, Key=item["Key"])
                    recordings.append(RecordingMetadata.model_validate_json(response["Body"].read()))
        except ClientError as e:
            raise RemoteError(f"S3 listing failed: {e}")

        recordings.sort(key=lambda m: m.stored_at, reverse=True)
        return recordings[:limit]

    async def health_check(self) -> bool:
        try:
            self._client.head_bucket(Bucket=self._bucket)
            return True
        except Exception:
            return False
