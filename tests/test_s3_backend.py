"""Tests for the S3 backend client."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from filegate.backends.factory import create_object_client
from filegate.backends.s3 import S3ObjectClient, s3_storage_class
from filegate.models import BackendConfig
from filegate.normalize import metadata_from_headers

MODIFIED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestS3ObjectClient:
    """Test S3ObjectClient against a mocked aioboto3 session."""

    @pytest.fixture
    def mock_s3(self):
        """Mock aioboto3 S3 client."""
        return AsyncMock()

    @pytest.fixture
    def mock_session(self, mock_s3):
        session = MagicMock()
        session.client.return_value.__aenter__.return_value = mock_s3
        with patch("filegate.backends.s3.aioboto3.Session", return_value=session) as session_cls:
            yield session_cls

    @pytest.fixture
    def config(self):
        return BackendConfig(
            endpoint="https://s3.us-west-2.amazonaws.com",
            region="us-west-2",
            accessKeyID="test-key",
            accessKeySecret="test-secret",
        )

    @pytest.fixture
    async def client(self, config, mock_session):
        client = S3ObjectClient(config)
        await client.connect()
        yield client
        await client.cleanup()

    @pytest.mark.asyncio
    async def test_connect_uses_static_credentials(self, client, mock_session):
        mock_session.assert_called_once_with(
            aws_access_key_id="test-key",
            aws_secret_access_key="test-secret",
            region_name="us-west-2",
        )
        session = mock_session.return_value
        session.client.assert_called_once_with("s3", endpoint_url="https://s3.us-west-2.amazonaws.com")

    @pytest.mark.asyncio
    async def test_plain_endpoint_id_is_not_an_url(self, mock_session):
        client = S3ObjectClient(BackendConfig(endpoint="aws-main", accessKeyID="k", accessKeySecret="s"))
        await client.connect()

        mock_session.return_value.client.assert_called_once_with("s3")
        status = await client.get_status()
        assert status["endpoint_url"] is None
        assert status["connected"] is True

    @pytest.mark.asyncio
    async def test_cleanup_closes_client(self, client, mock_session):
        await client.cleanup()

        mock_session.return_value.client.return_value.__aexit__.assert_awaited_once()
        with pytest.raises(RuntimeError, match="not connected"):
            await client.delete_object("b", "k")

    @pytest.mark.asyncio
    async def test_put_object(self, client, mock_s3):
        await client.put_object("bucket1", "a.txt", b"hello", "IA")

        mock_s3.put_object.assert_awaited_once_with(
            Bucket="bucket1", Key="a.txt", Body=b"hello", StorageClass="STANDARD_IA"
        )

    @pytest.mark.asyncio
    async def test_get_object_reads_body(self, client, mock_s3):
        body = MagicMock()
        body.read = AsyncMock(side_effect=[b"hel", b"lo", b""])
        mock_s3.get_object.return_value = {"Body": body}

        reader = await client.get_object("bucket1", "a.txt")

        assert await reader.read(3) == b"hel"
        assert await reader.read(3) == b"lo"
        assert await reader.read(3) == b""
        await reader.close()
        body.close.assert_called_once()
        mock_s3.get_object.assert_awaited_once_with(Bucket="bucket1", Key="a.txt")

    @pytest.mark.asyncio
    async def test_list_objects(self, client, mock_s3):
        mock_s3.list_objects.return_value = {
            "Contents": [
                {"Key": "dir/a.txt", "Size": 5, "LastModified": MODIFIED},
                {"Key": "dir/b.txt", "Size": 7, "LastModified": MODIFIED},
            ],
            "IsTruncated": True,
        }

        page = await client.list_objects("bucket1", "dir/", "dir/0", 2)

        assert [e.key for e in page.entries] == ["dir/a.txt", "dir/b.txt"]
        assert page.entries[1].size == 7
        assert page.entries[0].last_modified == MODIFIED
        assert page.is_truncated is True
        mock_s3.list_objects.assert_awaited_once_with(
            Bucket="bucket1", Prefix="dir/", MaxKeys=2, Marker="dir/0"
        )

    @pytest.mark.asyncio
    async def test_list_first_page_has_no_marker(self, client, mock_s3):
        mock_s3.list_objects.return_value = {"IsTruncated": False}

        page = await client.list_objects("bucket1", "", "", 10)

        assert page.entries == []
        assert page.is_truncated is False
        mock_s3.list_objects.assert_awaited_once_with(Bucket="bucket1", Prefix="", MaxKeys=10)

    @pytest.mark.asyncio
    async def test_delete_object(self, client, mock_s3):
        await client.delete_object("bucket1", "a.txt")
        mock_s3.delete_object.assert_awaited_once_with(Bucket="bucket1", Key="a.txt")

    @pytest.mark.asyncio
    async def test_head_object(self, client, mock_s3):
        mock_s3.head_object.return_value = {
            "ContentLength": 1024,
            "LastModified": MODIFIED,
            "ETag": '"test-etag"',
            "ContentType": "text/plain",
            "Metadata": {"owner": "alice"},
        }

        headers = await client.head_object("bucket1", "a.txt")

        assert headers == {
            "Content-Length": ["1024"],
            "Last-Modified": ["2024-05-01T12:00:00+00:00"],
            "ETag": ['"test-etag"'],
            "Content-Type": ["text/plain"],
            "x-amz-meta-owner": ["alice"],
        }

    @pytest.mark.asyncio
    async def test_user_metadata_never_replaces_system_headers(self, client, mock_s3):
        mock_s3.head_object.return_value = {
            "ContentLength": 5,
            "LastModified": MODIFIED,
            "ETag": '"real-etag"',
            "Metadata": {"etag": "spoofed", "content-length": "999"},
        }

        headers = await client.head_object("bucket1", "a.txt")
        meta = metadata_from_headers(headers)

        assert meta.size == 5
        assert meta.extra["ETag"] == ['"real-etag"']
        assert meta.extra["x-amz-meta-etag"] == ["spoofed"]
        assert meta.extra["x-amz-meta-content-length"] == ["999"]

    @pytest.mark.parametrize(
        "code,status,expected",
        [
            ("404", 404, True),
            ("NoSuchKey", 404, True),
            ("NotFound", None, True),
            ("AccessDenied", 403, False),
            ("NoSuchBucket", 404, False),
        ],
    )
    def test_is_not_found(self, config, code, status, expected):
        client = S3ObjectClient(config)
        error = ClientError(
            {"Error": {"Code": code}, "ResponseMetadata": {"HTTPStatusCode": status}}, "HeadObject"
        )
        assert client.is_not_found(error) is expected
        assert client.is_not_found(RuntimeError("404")) is False


@pytest.mark.parametrize(
    "hint,expected",
    [
        ("Standard", "STANDARD"),
        ("IA", "STANDARD_IA"),
        ("Archive", "GLACIER"),
        ("ColdArchive", "DEEP_ARCHIVE"),
        ("intelligent_tiering", "INTELLIGENT_TIERING"),
        ("", "STANDARD"),
        (None, "STANDARD"),
    ],
)
def test_s3_storage_class(hint, expected):
    assert s3_storage_class(hint) == expected


@pytest.mark.parametrize("kind", ["aws", "s3", "MinIO"])
def test_factory_builds_s3_clients(kind):
    config = BackendConfig(endpoint="e1", accessKeyID="k", accessKeySecret="s", type=kind)
    assert isinstance(create_object_client(config), S3ObjectClient)
