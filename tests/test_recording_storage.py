"""
Recording Storage Tests.

Tests the local filesystem and S3 recording storage providers. S3 is
exercised against a mocked boto3 client.
"""
import io
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from mock_interview.core.errors import RemoteError
from mock_interview.models.recording import RecordingArtifact
from mock_interview.providers.recording_storage import (
    LocalRecordingStorage,
    S3RecordingStorage,
    create_recording_storage,
)
from mock_interview.providers.recording_storage.base import extension_for


def client_error(code, operation="GetObject"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestExtensionFor:
    """MIME type to file extension mapping."""

    @pytest.mark.parametrize("mime_type,expected", [
        ("video/webm;codecs=vp8,opus", "webm"),
        ("audio/webm", "webm"),
        ("VIDEO/MP4", "mp4"),
        ("application/x-unknown", "bin"),
    ])
    def test_extension(self, mime_type, expected):
        assert extension_for(mime_type) == expected


class TestLocalRecordingStorage:
    """Tests for LocalRecordingStorage."""

    @pytest.fixture
    def storage(self, tmp_path):
        return LocalRecordingStorage(str(tmp_path / "recordings"))

    @pytest.mark.asyncio
    async def test_store_and_retrieve(self, storage, tmp_path):
        meta = await storage.store("user-1", b"webm-bytes", "video/webm;codecs=vp8,opus", session_id="s-1")

        assert meta.size_bytes == 10
        assert meta.session_id == "s-1"
        assert (tmp_path / "recordings" / "user-1" / f"{meta.recording_id}.webm").exists()
        assert await storage.retrieve("user-1", meta.recording_id) == b"webm-bytes"
        assert await storage.get_metadata("user-1", meta.recording_id) == meta

    @pytest.mark.asyncio
    async def test_other_user_cannot_read(self, storage):
        meta = await storage.store("user-1", b"data", "video/webm")

        assert await storage.retrieve("user-2", meta.recording_id) is None
        assert await storage.delete("user-2", meta.recording_id) is False

    @pytest.mark.asyncio
    async def test_similar_user_ids_are_kept_apart(self, storage):
        meta = await storage.store("a b", b"data", "video/webm")

        assert await storage.retrieve("ab", meta.recording_id) is None
        assert await storage.list_recordings("ab") == []
        assert await storage.retrieve("a b", meta.recording_id) == b"data"

    @pytest.mark.asyncio
    async def test_store_artifact(self, storage):
        started = datetime(2025, 1, 1, tzinfo=timezone.utc)
        artifact = RecordingArtifact(blob=b"chunk1chunk2", mime_type="audio/webm", started_at=started)

        meta = await storage.store_artifact("user-1", artifact, session_id="s-9")

        assert meta.started_at == started
        assert meta.mime_type == "audio/webm"
        assert await storage.retrieve("user-1", meta.recording_id) == b"chunk1chunk2"

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        meta = await storage.store("user-1", b"data", "video/webm")

        assert await storage.delete("user-1", meta.recording_id) is True
        assert await storage.retrieve("user-1", meta.recording_id) is None
        assert await storage.delete("user-1", meta.recording_id) is False

    @pytest.mark.asyncio
    async def test_list_newest_first(self, storage):
        first = await storage.store("user-1", b"1", "video/webm")
        second = await storage.store("user-1", b"2", "video/webm")
        await storage.store("user-2", b"3", "video/webm")

        recordings = await storage.list_recordings("user-1")

        assert [m.recording_id for m in recordings] == [second.recording_id, first.recording_id]
        assert len(await storage.list_recordings("user-1", limit=1)) == 1

    @pytest.mark.asyncio
    async def test_list_unknown_user(self, storage):
        assert await storage.list_recordings("nobody") == []


class TestS3RecordingStorage:
    """Tests for S3RecordingStorage with a mocked boto3 client."""

    @pytest.fixture
    def s3_client(self):
        objects = {}
        client = MagicMock()

        def put_object(Bucket, Key, Body, ContentType):
            objects[Key] = Body

        def get_object(Bucket, Key):
            if Key not in objects:
                raise client_error("NoSuchKey")
            return {"Body": io.BytesIO(objects[Key])}

        def delete_object(Bucket, Key):
            objects.pop(Key, None)

        def paginate(Bucket, Prefix):
            return [{"Contents": [{"Key": key} for key in objects if key.startswith(Prefix)]}]

        client.put_object.side_effect = put_object
        client.get_object.side_effect = get_object
        client.delete_object.side_effect = delete_object
        client.get_paginator.return_value.paginate.side_effect = paginate
        client.objects = objects
        return client

    @pytest.fixture
    def storage(self, settings, s3_client):
        return S3RecordingStorage(settings, client=s3_client)

    @pytest.mark.asyncio
    async def test_store_uploads_blob_and_metadata(self, storage, s3_client):
        meta = await storage.store("user-1", b"video", "video/mp4")

        assert set(s3_client.objects) == {
            f"recordings/user-1/{meta.recording_id}.mp4",
            f"recordings/user-1/{meta.recording_id}.meta.json",
        }
        blob_call = s3_client.put_object.call_args_list[0].kwargs
        assert blob_call["Bucket"] == "mock-interview"
        assert blob_call["ContentType"] == "video/mp4"

    @pytest.mark.asyncio
    async def test_retrieve(self, storage):
        meta = await storage.store("user-1", b"video", "video/webm")

        assert await storage.retrieve("user-1", meta.recording_id) == b"video"
        assert (await storage.get_metadata("user-1", meta.recording_id)).size_bytes == 5

    @pytest.mark.asyncio
    async def test_missing_object_returns_none(self, storage):
        assert await storage.get_metadata("user-1", "missing") is None
        assert await storage.retrieve("user-1", "missing") is None
        assert await storage.delete("user-1", "missing") is False

    @pytest.mark.asyncio
    async def test_other_client_errors_become_remote_errors(self, storage, s3_client):
        s3_client.get_object.side_effect = client_error("AccessDenied")

        with pytest.raises(RemoteError):
            await storage.get_metadata("user-1", "any")

    @pytest.mark.asyncio
    async def test_upload_failure(self, storage, s3_client):
        s3_client.put_object.side_effect = client_error("InternalError", "PutObject")

        with pytest.raises(RemoteError):
            await storage.store("user-1", b"video", "video/webm")

    @pytest.mark.asyncio
    async def test_delete_removes_both_objects(self, storage, s3_client):
        meta = await storage.store("user-1", b"video", "video/webm")

        assert await storage.delete("user-1", meta.recording_id) is True
        assert s3_client.objects == {}

    @pytest.mark.asyncio
    async def test_list_reads_metadata_only(self, storage):
        first = await storage.store("user-1", b"1", "video/webm")
        second = await storage.store("user-1", b"2", "video/webm")
        await storage.store("user-2", b"3", "video/webm")

        recordings = await storage.list_recordings("user-1")

        assert [m.recording_id for m in recordings] == [second.recording_id, first.recording_id]

    @pytest.mark.asyncio
    async def test_initialize_creates_missing_bucket(self, storage, s3_client):
        s3_client.head_bucket.side_effect = client_error("404", "HeadBucket")

        await storage.initialize()

        s3_client.create_bucket.assert_called_once_with(Bucket="mock-interview")

    @pytest.mark.asyncio
    async def test_initialize_existing_bucket(self, storage, s3_client):
        await storage.initialize()

        s3_client.create_bucket.assert_not_called()

    @pytest.mark.asyncio
    async def test_health_check(self, storage, s3_client):
        assert await storage.health_check() is True

        s3_client.head_bucket.side_effect = client_error("403", "HeadBucket")
        assert await storage.health_check() is False


class TestCreateRecordingStorage:
    """Tests for backend selection."""

    @pytest.mark.asyncio
    async def test_local_backend(self, settings):
        storage = await create_recording_storage(settings)
        assert isinstance(storage, LocalRecordingStorage)

    @pytest.mark.asyncio
    async def test_unknown_backend(self, settings):
        settings.recording_storage_backend = "ftp"

        with pytest.raises(ValueError):
            await create_recording_storage(settings)
