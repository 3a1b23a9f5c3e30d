from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from shared.config import StorageConfig
from storage_tool.s3_storage import S3AudioStorage


BASE_URL = "https://cdn.example.com/sounds"
BUCKET = "soundboard-clips"


def client_error(code, status=400, operation="HeadObject"):
    """Build a real botocore ClientError like the ones the S3 client raises."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


def s3_object(key, size, modified=None):
    return {
        "Key": key,
        "Size": size,
        "LastModified": modified or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    }


@pytest.fixture
def config():
    return StorageConfig(
        access_key_id="AKIATEST",
        secret_access_key="secret",
        bucket_name=BUCKET,
        base_url=BASE_URL,
    )


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.list_objects_v2.return_value = {}
    return client


@pytest.fixture
def storage(config, s3_client):
    return S3AudioStorage(config=config, client=s3_client)
