"""Output sinks for rendition packages."""

from .local import LocalSink
from .provisioner import BucketProvisioner, S3Credentials, create_s3_client, validate_remote_config
from .remote import RemoteSink, StagedRemoteSink, UploadAttempt, content_type_for
from .targets import LocalTarget, OutputSink, RemoteTarget, SinkTarget, open_sink

__all__ = [
    'BucketProvisioner',
    'LocalSink',
    'LocalTarget',
    'OutputSink',
    'RemoteSink',
    'RemoteTarget',
    'S3Credentials',
    'SinkTarget',
    'StagedRemoteSink',
    'UploadAttempt',
    'content_type_for',
    'create_s3_client',
    'open_sink',
    'validate_remote_config',
]
