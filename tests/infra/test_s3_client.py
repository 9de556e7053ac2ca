"""Tests for S3 storage client."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from family_cloud.common.config import Settings
from family_cloud.infra.storage.client import (
    ObjectHead,
    ObjectNotFoundError,
    StorageError,
)
from family_cloud.infra.storage.s3_client import S3StorageClient


def _client_error(code: str, operation: str = "Op") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _listed(key, size, etag, modified):
    return {"Key": key, "Size": size, "ETag": etag, "LastModified": modified}


class TestS3StorageClient:
    """Test S3StorageClient implementation."""

    @pytest.fixture
    def mock_s3(self):
        """Mock boto3 S3 client."""
        mock_client = MagicMock()
        with patch.object(S3StorageClient, "_build_client", return_value=mock_client):
            yield mock_client

    @pytest.fixture
    def settings(self):
        return Settings(MINIO_ENDPOINT="localhost", MINIO_PORT=9000)

    @pytest.fixture
    def client(self, mock_s3, settings):
        """Create S3StorageClient with mocked boto3."""
        return S3StorageClient(settings=settings)

    def test_bucket_exists(self, client, mock_s3):
        assert client.bucket_exists(bucket="photos") is True
        mock_s3.head_bucket.assert_called_once_with(Bucket="photos")

    @pytest.mark.parametrize("code", ["404", "NoSuchBucket", "NotFound"])
    def test_bucket_missing(self, client, mock_s3, code):
        mock_s3.head_bucket.side_effect = _client_error(code, "HeadBucket")
        assert client.bucket_exists(bucket="photos") is False

    def test_bucket_exists_forbidden(self, client, mock_s3):
        mock_s3.head_bucket.side_effect = _client_error("403", "HeadBucket")
        with pytest.raises(StorageError, match="Failed to check bucket"):
            client.bucket_exists(bucket="photos")

    def test_bucket_exists_connection_error(self, client, mock_s3):
        mock_s3.head_bucket.side_effect = Exception("connection refused")
        with pytest.raises(StorageError, match="connection refused"):
            client.bucket_exists(bucket="photos")

    def test_create_bucket_default_region(self, client, mock_s3):
        client.create_bucket(bucket="photos")
        mock_s3.create_bucket.assert_called_once_with(Bucket="photos")

    def test_create_bucket_other_region(self, mock_s3):
        client = S3StorageClient(settings=Settings(MINIO_REGION="eu-west-1"))
        client.create_bucket(bucket="photos")
        mock_s3.create_bucket.assert_called_once_with(
            Bucket="photos",
            CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
        )

    def test_create_bucket_exception(self, client, mock_s3):
        mock_s3.create_bucket.side_effect = Exception("S3 error")
        with pytest.raises(StorageError, match="Failed to create bucket: S3 error"):
            client.create_bucket(bucket="photos")

    def test_put_object(self, client, mock_s3):
        client.put_object(
            bucket="photos",
            object_key="1_a.txt",
            data=b"hello",
            content_type="text/plain",
        )
        mock_s3.put_object.assert_called_once_with(
            Bucket="photos",
            Key="1_a.txt",
            Body=b"hello",
            ContentLength=5,
            ContentType="text/plain",
        )

    def test_put_object_missing_bucket(self, client, mock_s3):
        mock_s3.put_object.side_effect = _client_error("NoSuchBucket", "PutObject")
        with pytest.raises(ObjectNotFoundError, match="Failed to upload object"):
            client.put_object(
                bucket="photos", object_key="k", data=b"x", content_type="text/plain"
            )

    def test_head_object(self, client, mock_s3):
        mock_s3.head_object.return_value = {
            "ContentLength": 1024,
            "ETag": '"test-etag"',
            "ContentType": "application/pdf",
        }

        result = client.head_object(bucket="photos", object_key="test/key")

        assert result == ObjectHead(
            size_bytes=1024, etag='"test-etag"', content_type="application/pdf"
        )
        mock_s3.head_object.assert_called_once_with(Bucket="photos", Key="test/key")

    def test_head_object_not_found(self, client, mock_s3):
        mock_s3.head_object.side_effect = _client_error("404", "HeadObject")
        with pytest.raises(ObjectNotFoundError, match="Failed to get object metadata"):
            client.head_object(bucket="photos", object_key="missing")

    def test_iter_objects_walks_pages(self, client, mock_s3):
        modified = datetime(2024, 5, 1, tzinfo=timezone.utc)
        paginator = MagicMock()
        paginator.paginate.return_value = iter(
            [
                {"Contents": [_listed("a/1", 3, '"e1"', modified)]},
                {"KeyCount": 0},
                {"Contents": [_listed("a/b/2", 5, '"e2"', modified)]},
            ]
        )
        mock_s3.get_paginator.return_value = paginator

        objects = list(client.iter_objects(bucket="photos", prefix="a/"))

        assert [(o.name, o.size, o.etag) for o in objects] == [
            ("a/1", 3, "e1"),
            ("a/b/2", 5, "e2"),
        ]
        assert objects[0].last_modified == modified
        mock_s3.get_paginator.assert_called_once_with("list_objects_v2")
        paginator.paginate.assert_called_once_with(Bucket="photos", Prefix="a/")

    def test_iter_objects_is_lazy(self, client, mock_s3):
        client.iter_objects(bucket="photos")
        mock_s3.get_paginator.assert_not_called()

    def test_iter_objects_error_mid_listing(self, client, mock_s3):
        def pages():
            yield {"Contents": [{"Key": "a", "Size": 1}]}
            raise _client_error("InternalError", "ListObjectsV2")

        paginator = MagicMock()
        paginator.paginate.return_value = pages()
        mock_s3.get_paginator.return_value = paginator

        listing = client.iter_objects(bucket="photos")
        assert next(listing).name == "a"
        with pytest.raises(StorageError, match="Failed to list objects"):
            next(listing)

    def test_get_object(self, client, mock_s3):
        body = MagicMock()
        body.iter_chunks.return_value = iter([b"he", b"llo"])
        mock_s3.get_object.return_value = {
            "Body": body,
            "ContentType": "text/plain",
            "ContentLength": 5,
        }

        stream = client.get_object(bucket="photos", object_key="k", chunk_size=2)

        assert stream.content_type == "text/plain"
        assert stream.content_length == 5
        assert list(stream.chunks) == [b"he", b"llo"]
        body.iter_chunks.assert_called_once_with(chunk_size=2)
        stream.close()
        body.close.assert_called_once_with()

    def test_get_object_not_found(self, client, mock_s3):
        mock_s3.get_object.side_effect = _client_error("NoSuchKey", "GetObject")
        with pytest.raises(ObjectNotFoundError, match="Failed to get object"):
            client.get_object(bucket="photos", object_key="missing", chunk_size=2)

    def test_get_object_read_failure(self, client, mock_s3):
        def broken():
            yield b"he"
            raise OSError("connection reset")

        body = MagicMock()
        body.iter_chunks.return_value = broken()
        mock_s3.get_object.return_value = {"Body": body}

        stream = client.get_object(bucket="photos", object_key="k", chunk_size=2)
        assert next(stream.chunks) == b"he"
        with pytest.raises(StorageError, match="Failed to read object body"):
            next(stream.chunks)

    def test_delete_object(self, client, mock_s3):
        client.delete_object(bucket="photos", object_key="test/key")
        mock_s3.delete_object.assert_called_once_with(Bucket="photos", Key="test/key")

    def test_delete_object_exception(self, client, mock_s3):
        mock_s3.delete_object.side_effect = Exception("S3 error")
        with pytest.raises(StorageError, match="Failed to delete object"):
            client.delete_object(bucket="photos", object_key="test/key")


def test_build_client_uses_minio_settings():
    settings = Settings(
        MINIO_ENDPOINT="https://storage.local/",
        MINIO_PORT=9443,
        MINIO_USE_SSL=True,
        MINIO_ACCESS_KEY="ak",
        MINIO_SECRET_KEY="sk",
        STORAGE_CONNECT_TIMEOUT=2,
        STORAGE_READ_TIMEOUT=30,
    )
    with patch("family_cloud.infra.storage.s3_client.boto3.client") as factory:
        S3StorageClient(settings=settings)

    kwargs = factory.call_args.kwargs
    assert factory.call_args.args == ("s3",)
    assert kwargs["endpoint_url"] == "https://storage.local:9443"
    assert kwargs["aws_access_key_id"] == "ak"
    assert kwargs["aws_secret_access_key"] == "sk"
    assert kwargs["use_ssl"] is True
    config = kwargs["config"]
    assert config.connect_timeout == 2
    assert config.read_timeout == 30
    assert config.retries == {"mode": "standard", "total_max_attempts": 1}
