"""Common test fixtures and utilities."""
from typing import Dict, List, Optional, Set

import pytest
from botocore.exceptions import ClientError
from loguru import logger

from hlsladder.core.errors import TranscodeError
from hlsladder.core.types import RenditionSpec


def client_error(code: str = "SlowDown", operation: str = "PutObject") -> ClientError:
    """Build a botocore ClientError with the given code."""
    return ClientError({"Error": {"Code": code, "Message": f"{code} happened"}}, operation)


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client."""

    def __init__(self, buckets: Optional[List[str]] = None, failures: Optional[Dict[str, int]] = None):
        self.buckets = list(buckets or [])
        self.failures = dict(failures or {})
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.put_calls: List[str] = []
        self.created: List[dict] = []
        self.create_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None

    def list_buckets(self):
        if self.list_error:
            raise self.list_error
        return {"Buckets": [{"Name": name} for name in self.buckets]}

    def create_bucket(self, **kwargs):
        self.created.append(kwargs)
        if self.create_error:
            raise self.create_error
        self.buckets.append(kwargs["Bucket"])
        return {}

    def put_object(self, Bucket, Key, Body, ContentType):
        self.put_calls.append(Key)
        if self.failures.get(Key, 0) > 0:
            self.failures[Key] -= 1
            raise client_error()
        self.objects[Key] = Body
        self.content_types[Key] = ContentType
        return {"ETag": '"etag"'}


class FakeRunner:
    """Job runner that writes placeholder HLS files instead of calling ffmpeg."""

    def __init__(self, fail_on: Optional[Set[str]] = None):
        self.fail_on = set(fail_on or ())
        self.calls: List[str] = []

    def run(self, source_path, spec: RenditionSpec, destination, on_progress=None):
        self.calls.append(spec.label)
        output_dir = destination.prepare()
        try:
            if spec.label in self.fail_on:
                (output_dir / f"{spec.label}_segment_000.ts").write_bytes(b"partial")
                raise TranscodeError(spec.label, "ffmpeg exited with code 1", "boom")
            (output_dir / spec.playlist_name).write_text(
                f"#EXTM3U\n#EXTINF:4.0,\n{spec.label}_segment_000.ts\n#EXT-X-ENDLIST\n"
            )
            (output_dir / f"{spec.label}_segment_000.ts").write_bytes(b"\x47" * 188)
            if on_progress:
                on_progress(spec.label, 50.0)
                on_progress(spec.label, 100.0)
            return destination.collect()
        finally:
            destination.release()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop log sinks added by AppConfig so they do not outlive the test."""
    yield
    logger.remove()


@pytest.fixture
def temp_dir(tmp_path):
    """Create a temporary directory for tests."""
    return tmp_path


@pytest.fixture
def mock_video_file(temp_dir):
    """Create a mock video file for testing."""
    video_file = temp_dir / "source.mp4"
    video_file.write_bytes(b"mock video content")
    return video_file


@pytest.fixture
def fake_s3():
    """Create an empty fake S3 client."""
    return FakeS3Client()


@pytest.fixture
def fake_runner():
    """Create a runner that never calls ffmpeg."""
    return FakeRunner()


@pytest.fixture
def ladder():
    """Three renditions in a deliberately non-sorted order."""
    return [
        RenditionSpec.from_label("720p", "3500k"),
        RenditionSpec.from_label("360p", "800k"),
        RenditionSpec.from_label("1080p", "6000k"),
    ]


@pytest.fixture
def make_s3():
    """Factory for fake S3 clients with preset buckets or failures."""
    return FakeS3Client


@pytest.fixture
def make_runner():
    """Factory for fake runners failing on given labels."""
    return FakeRunner


@pytest.fixture
def make_client_error():
    """Factory for botocore ClientErrors."""
    return client_error
