"""Shared fixtures for bulk upload tests."""

import os
import sys

import boto3
import pytest
from moto import mock_aws

# Allow running the suite without installing the package
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from bulk_upload.common.config import UploadConfig  # noqa: E402


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    """Set AWS and upload environment variables for testing."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")

    monkeypatch.setenv("DESTINATION_BUCKET", "destination-bucket")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("DESTINATION_PREFIX", "uploads/")
    monkeypatch.setenv("MAX_CONCURRENCY", "5")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("S3_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("ALLOWED_EXTENSIONS", raising=False)
    monkeypatch.delenv("FORBIDDEN_EXTENSIONS", raising=False)


@pytest.fixture
def config():
    return UploadConfig.from_env()


@pytest.fixture
def s3_client():
    """Create a moto-mocked S3 client."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        yield client


@pytest.fixture
def destination_bucket(s3_client):
    """Create the destination bucket."""
    s3_client.create_bucket(Bucket="destination-bucket")
    return s3_client


@pytest.fixture
def source_dir(tmp_path):
    """A directory tree with ten small files, two of them nested."""
    root = tmp_path / "source"
    root.mkdir()
    for i in range(8):
        (root / f"file{i}.txt").write_text(f"content of file {i}" * 10)
    nested = root / "nested"
    nested.mkdir()
    for i in range(2):
        (nested / f"inner{i}.txt").write_text(f"inner {i}")
    return root
