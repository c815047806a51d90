"""Output targets and sink selection."""

import time
from pathlib import Path
from typing import Annotated, Callable, Literal, Optional, Protocol, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..config import default_config as defaults
from ..core.types import Artifact, ManifestLocation
from ..encoding.destination import Destination
from .local import LocalSink
from .provisioner import BucketProvisioner, S3Credentials, create_s3_client, validate_remote_config
from .remote import RemoteSink, StagedRemoteSink


class LocalTarget(BaseModel):
    """Write everything under a local directory."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    kind: Literal['local'] = 'local'
    directory: Path


class RemoteTarget(BaseModel):
    """Deliver everything to a bucket under a key prefix.

    Setting ``staging_dir`` stages output locally and uploads the whole
    tree at the end; leaving it unset uploads each rendition as soon as it
    is produced.
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    kind: Literal['remote'] = 'remote'
    bucket: str = ''
    prefix: str = ''
    credentials: S3Credentials = Field(default_factory=S3Credentials)
    staging_dir: Optional[Path] = None


SinkTarget = Annotated[Union[LocalTarget, RemoteTarget], Field(discriminator='kind')]


class OutputSink(Protocol):
    """What the pipeline needs from an output."""

    def destination(self) -> Destination:
        ...

    def store(self, name: str, data: bytes):
        ...

    def store_artifact(self, artifact: Artifact) -> None:
        ...

    def finalize(self, manifest_name: str) -> ManifestLocation:
        ...


def open_sink(
    target: Union[LocalTarget, RemoteTarget],
    client_factory: Callable[[S3Credentials], object] = create_s3_client,
    retries: int = defaults.UPLOAD_RETRIES,
    retry_delay: float = defaults.RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep
) -> OutputSink:
    """Turn a target into a ready-to-use sink.

    Remote targets are validated before any client is built, and the
    bucket is provisioned before the sink is returned.

    Args:
        target: Local or remote target
        client_factory: Builds the S3 client for remote targets
        retries: Attempts per uploaded object
        retry_delay: Back-off unit in seconds
        sleep: Function used to wait between attempts

    Raises:
        ConfigurationError: If a remote target is incomplete
        ProvisionError: If the bucket cannot be checked or created
    """
    if isinstance(target, LocalTarget):
        logger.debug(f"Using local output {target.directory}")
        return LocalSink(target.directory)

    validate_remote_config(target.bucket, target.credentials)
    client = client_factory(target.credentials)
    BucketProvisioner(client).ensure(target.bucket, target.credentials.region)

    remote = RemoteSink(
        client,
        target.bucket,
        target.prefix,
        retries=retries,
        retry_delay=retry_delay,
        sleep=sleep,
    )
    if target.staging_dir is not None:
        logger.debug(f"Staging output in {target.staging_dir} before upload")
        return StagedRemoteSink(remote, target.staging_dir)
    return remote
