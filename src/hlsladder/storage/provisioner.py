"""Bucket provisioning and S3 client construction."""

from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..config import default_config as defaults
from ..core.errors import ConfigurationError, ProvisionError

# Returned when a concurrent run created our bucket first
ALREADY_OWNED = 'BucketAlreadyOwnedByYou'


class S3Credentials(BaseModel):
    """Static access keys and region; no session tokens."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra='forbid')

    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = Field(default=None, repr=False)
    region: Optional[str] = None


def validate_remote_config(bucket: Optional[str], credentials: S3Credentials) -> None:
    """Check every required field before any network call.

    Raises:
        ConfigurationError: Listing all missing fields
    """
    missing = []
    if not bucket:
        missing.append('bucket')
    if not credentials.region:
        missing.append('region')
    if not credentials.access_key_id:
        missing.append('access_key_id')
    if not credentials.secret_access_key:
        missing.append('secret_access_key')

    if missing:
        logger.error(f"Configuration is incomplete, missing: {', '.join(missing)}")
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


def create_s3_client(credentials: S3Credentials):
    """Build an S3 client for one pipeline run."""
    return boto3.client(
        's3',
        region_name=credentials.region,
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
    )


class BucketProvisioner:
    """Makes sure a bucket exists before anything is uploaded."""

    def __init__(self, client):
        """Initialize provisioner.

        Args:
            client: boto3 S3 client
        """
        self._client = client

    def ensure(self, bucket: str, region: str) -> bool:
        """Create the bucket unless it is already listed.

        Check-then-create is not atomic; losing the race to another run
        surfaces as BucketAlreadyOwnedByYou, which counts as success.

        Args:
            bucket: Bucket name
            region: Region to create the bucket in

        Returns:
            True if the bucket was created by this call

        Raises:
            ProvisionError: If listing or creating fails
        """
        try:
            response = self._client.list_buckets()
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Could not list buckets: {e}")
            raise ProvisionError(bucket, e)

        if any(b.get('Name') == bucket for b in response.get('Buckets', [])):
            logger.info(f"Bucket {bucket} already exists")
            return False

        kwargs = {'Bucket': bucket}
        # us-east-1 rejects an explicit LocationConstraint
        if region and region != defaults.DEFAULT_REGION:
            kwargs['CreateBucketConfiguration'] = {'LocationConstraint': region}

        try:
            self._client.create_bucket(**kwargs)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == ALREADY_OWNED:
                logger.info(f"Bucket {bucket} was created concurrently")
                return False
            logger.error(f"Could not create bucket {bucket}: {e}")
            raise ProvisionError(bucket, e)
        except BotoCoreError as e:
            logger.error(f"Could not create bucket {bucket}: {e}")
            raise ProvisionError(bucket, e)

        logger.info(f"Bucket {bucket} created in {region}")
        return True
