"""Pipeline error types."""

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        """Initialize error.

        Args:
            message: Error message
            details: Optional technical details
        """
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigurationError(PipelineError):
    """Missing or invalid settings, detected before any external call."""
    pass


class TranscodeError(PipelineError):
    """Error running ffmpeg for one rendition."""

    def __init__(self, label: str, message: str, stderr: Optional[str] = None):
        """Initialize error.

        Args:
            label: Resolution label of the failed job
            message: Error message
            stderr: Tail of ffmpeg error output
        """
        super().__init__(f"{label}: {message}", stderr)
        self.label = label
        self.stderr = stderr


class UploadError(PipelineError):
    """Error uploading one object after every attempt failed."""

    def __init__(self, key: str, cause: Exception):
        """Initialize error.

        Args:
            key: Object key that could not be uploaded
            cause: Exception raised by the last attempt
        """
        super().__init__(f"Upload of {key} failed: {cause}", repr(cause))
        self.key = key
        self.cause = cause


class ProvisionError(PipelineError):
    """Error checking for or creating the target bucket."""

    def __init__(self, bucket: str, cause: Exception):
        """Initialize error.

        Args:
            bucket: Bucket name
            cause: Underlying client error
        """
        super().__init__(f"Could not provision bucket {bucket}: {cause}", repr(cause))
        self.bucket = bucket
        self.cause = cause
