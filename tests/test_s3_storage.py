"""
Tests for the S3 artifact storage using a mocked boto3 client.
"""
import io
import json
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from fragments_api.domain.errors import NotFoundError, PersistenceError
from fragments_api.storage.s3 import S3ArtifactStorage


def client_error(code, operation="GetObject"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3:
    """In-memory stand-in for the few S3 calls the storage makes."""

    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, **kwargs):
        self.objects[Key] = Body

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise client_error("NoSuchKey")
        return {"Body": io.BytesIO(self.objects[Key])}

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise client_error("404", "HeadObject")
        return {}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)

    def get_paginator(self, name):
        paginator = Mock()
        paginator.paginate.side_effect = lambda Bucket, Prefix: [{
            "Contents": [
                {"Key": key, "Size": len(body)}
                for key, body in sorted(self.objects.items())
                if key.startswith(Prefix)
            ]
        }]
        return paginator


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def s3_storage(fake_s3):
    return S3ArtifactStorage(bucket_name="bucket", prefix="fragments", client=fake_s3)


class TestS3ArtifactStorage:
    """Test S3 key layout and error mapping."""

    def test_save_uses_frag_and_json_keys(self, s3_storage, fake_s3):
        location = s3_storage.save("abc", b"payload", {"k": "v"})

        assert location == "s3://bucket/fragments/abc.frag"
        assert fake_s3.objects["fragments/abc.frag"] == b"payload"
        sidecar = json.loads(fake_s3.objects["fragments/abc.json"])
        assert sidecar["metadata"] == {"k": "v"}
        assert "timestamp" in sidecar

    def test_round_trip(self, s3_storage):
        s3_storage.save("abc", b"payload", {"k": "v"})

        assert s3_storage.load("abc") == (b"payload", {"k": "v"})

    def test_missing_sidecar_returns_none(self, s3_storage):
        s3_storage.save("abc", b"payload")

        assert s3_storage.load("abc") == (b"payload", None)

    def test_unknown_id_is_not_found(self, s3_storage):
        with pytest.raises(NotFoundError):
            s3_storage.load("missing")

    def test_blob_failure_writes_no_sidecar(self):
        client = Mock()
        client.put_object.side_effect = client_error("InternalError", "PutObject")
        storage = S3ArtifactStorage(bucket_name="bucket", client=client)

        with pytest.raises(PersistenceError):
            storage.save("abc", b"payload", {"k": "v"})

        assert client.put_object.call_count == 1

    def test_sidecar_failure_rolls_back_blob(self):
        client = Mock()
        client.put_object.side_effect = [None, client_error("InternalError", "PutObject")]
        storage = S3ArtifactStorage(bucket_name="bucket", prefix="fragments", client=client)

        with pytest.raises(PersistenceError):
            storage.save("abc", b"payload", {"k": "v"})

        client.delete_object.assert_called_once_with(Bucket="bucket", Key="fragments/abc.frag")

    def test_failed_rollback_still_raises_persistence_error(self):
        client = Mock()
        client.put_object.side_effect = [None, client_error("InternalError", "PutObject")]
        client.delete_object.side_effect = client_error("AccessDenied", "DeleteObject")
        storage = S3ArtifactStorage(bucket_name="bucket", prefix="fragments", client=client)

        with pytest.raises(PersistenceError, match="metadata"):
            storage.save("abc", b"payload", {"k": "v"})

        client.delete_object.assert_called_once_with(Bucket="bucket", Key="fragments/abc.frag")

    def test_list_flags_corrupt_sidecar(self, s3_storage, fake_s3):
        s3_storage.save("good", b"payload", {"k": "v"})
        s3_storage.save("bad", b"payload", {"k": "v"})
        fake_s3.objects["fragments/bad.json"] = b"{oops"

        entries = s3_storage.list_artifacts()

        assert [entry["id"] for entry in entries] == ["bad", "good"]
        assert entries[0]["error"] == "Could not read metadata"
        assert entries[1]["metadata"] == {"k": "v"}

    def test_exists(self, s3_storage):
        s3_storage.save("abc", b"payload")

        assert s3_storage.exists("abc")
        assert not s3_storage.exists("other")

    def test_initialize_creates_missing_bucket(self):
        client = Mock()
        client.head_bucket.side_effect = client_error("404", "HeadBucket")
        storage = S3ArtifactStorage(bucket_name="bucket", client=client)

        storage.initialize()

        client.create_bucket.assert_called_once_with(Bucket="bucket")

    def test_initialize_fail_fast(self):
        client = Mock()
        client.head_bucket.side_effect = client_error("403", "HeadBucket")
        storage = S3ArtifactStorage(bucket_name="bucket", client=client)

        with pytest.raises(PersistenceError):
            storage.initialize(fail_fast=True)

    def test_initialize_permissive(self):
        client = Mock()
        client.head_bucket.side_effect = client_error("403", "HeadBucket")
        storage = S3ArtifactStorage(bucket_name="bucket", client=client)

        storage.initialize(fail_fast=False)

        client.create_bucket.assert_not_called()

    def test_storage_stats(self, s3_storage):
        s3_storage.save("a", b"123", {"k": "v"})
        s3_storage.save("b", b"45")

        stats = s3_storage.get_storage_stats()

        assert stats["total_fragments"] == 2
        assert stats["total_size_bytes"] == 5
