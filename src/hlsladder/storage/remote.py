"""S3 output with per-object retries."""

import shutil
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..config import default_config as defaults
from ..core.errors import UploadError
from ..core.types import Artifact, ManifestLocation
from ..encoding.destination import CapturedDestination, Destination
from .local import LocalSink

CONTENT_TYPES = {
    '.m3u8': 'application/vnd.apple.mpegurl',
    '.ts': 'video/MP2T',
}
DEFAULT_CONTENT_TYPE = 'application/octet-stream'


@dataclass
class UploadAttempt:
    """Outcome of one put_object call."""
    key: str
    attempt: int
    succeeded: bool
    error: Optional[Exception] = None


def content_type_for(name: str) -> str:
    """Pick the Content-Type header from the file extension."""
    content_type = CONTENT_TYPES.get(PurePosixPath(name).suffix.lower())
    if content_type is None:
        logger.warning(f"Unknown file type for {name}, using {DEFAULT_CONTENT_TYPE}")
        return DEFAULT_CONTENT_TYPE
    return content_type


class RemoteSink:
    """Uploads each artifact to a bucket under a key prefix.

    Every object gets up to ``retries`` attempts with a linear back-off of
    ``attempt * retry_delay`` seconds between them. Exhausting the attempts
    raises UploadError and nothing further is uploaded.
    """

    def __init__(
        self,
        client,
        bucket: str,
        prefix: str = '',
        retries: int = defaults.UPLOAD_RETRIES,
        retry_delay: float = defaults.RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize sink.

        Args:
            client: boto3 S3 client
            bucket: Target bucket, already provisioned
            prefix: Key prefix for every object
            retries: Attempts per object
            retry_delay: Back-off unit in seconds
            sleep: Function used to wait between attempts
        """
        self._client = client
        self.bucket = bucket
        self.prefix = prefix.strip('/')
        self.retries = retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def key_for(self, name: str) -> str:
        """Object key for a path relative to the output root."""
        relative = str(name).replace('\\', '/').lstrip('/')
        return f"{self.prefix}/{relative}" if self.prefix else relative

    def destination(self) -> Destination:
        """Capture engine output in memory; nothing is staged on disk."""
        return CapturedDestination()

    def store(self, name: str, data: bytes) -> List[UploadAttempt]:
        """Upload one object, retrying failed attempts.

        Args:
            name: Path relative to the output root
            data: Object contents

        Returns:
            Attempts made, the last one successful

        Raises:
            UploadError: If every attempt failed
        """
        key = self.key_for(name)
        content_type = content_type_for(name)
        attempts: List[UploadAttempt] = []

        for attempt in range(1, self.retries + 1):
            try:
                self._client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                )
            except (BotoCoreError, ClientError) as e:
                attempts.append(UploadAttempt(key, attempt, False, e))
                logger.warning(f"Failed to upload {key} (attempt {attempt}/{self.retries}): {e}")
                if attempt == self.retries:
                    logger.error(f"Giving up on {key} after {self.retries} attempts")
                    raise UploadError(key, e)
                self._sleep(self.retry_delay * attempt)
            else:
                attempts.append(UploadAttempt(key, attempt, True))
                logger.debug(f"Uploaded {key} to {self.bucket}")
                break

        return attempts

    def store_artifact(self, artifact: Artifact) -> None:
        self.store(artifact.name, artifact.read_bytes())

    def upload_directory(self, root: Union[str, Path]) -> int:
        """Upload every file under a directory tree.

        Keys mirror the relative paths with forward slashes.

        Args:
            root: Directory to walk

        Returns:
            Number of uploaded files

        Raises:
            FileNotFoundError: If root does not exist
            UploadError: On the first object that cannot be uploaded
        """
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Directory {root} does not exist")

        count = 0
        for path in sorted(p for p in root.rglob('*') if p.is_file()):
            self.store(path.relative_to(root).as_posix(), path.read_bytes())
            count += 1
        logger.info(f"Uploaded {count} files from {root} to s3://{self.bucket}/{self.prefix}")
        return count

    def location(self, name: str) -> ManifestLocation:
        return ManifestLocation(f"s3://{self.bucket}/{self.key_for(name)}")

    def finalize(self, manifest_name: str) -> ManifestLocation:
        """Everything was uploaded as it was produced."""
        return self.location(manifest_name)


class StagedRemoteSink:
    """Stages output in a local directory and uploads it at the end.

    The staging directory is deleted only after every file was uploaded.
    """

    def __init__(self, remote: RemoteSink, staging_dir: Union[str, Path]):
        """Initialize sink.

        Args:
            remote: Sink used for the final upload
            staging_dir: Local directory ffmpeg writes into
        """
        self.remote = remote
        self.staging = LocalSink(staging_dir)

    def destination(self) -> Destination:
        return self.staging.destination()

    def store(self, name: str, data: bytes) -> None:
        self.staging.store(name, data)

    def store_artifact(self, artifact: Artifact) -> None:
        self.staging.store_artifact(artifact)

    def finalize(self, manifest_name: str) -> ManifestLocation:
        """Upload the staged tree, then delete it."""
        self.remote.upload_directory(self.staging.directory)
        shutil.rmtree(self.staging.directory)
        logger.info(f"Removed staging directory {self.staging.directory}")
        return self.remote.location(manifest_name)
