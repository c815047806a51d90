"""Adaptive HLS rendition pipeline."""

from .config import AppConfig
from .core import (
    ConfigurationError,
    ManifestLocation,
    PipelineError,
    ProvisionError,
    RenditionSpec,
    TranscodeError,
    UploadError,
)
from .pipeline import RenditionPipeline
from .storage import LocalTarget, RemoteTarget, S3Credentials

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "LocalTarget",
    "ManifestLocation",
    "PipelineError",
    "ProvisionError",
    "RemoteTarget",
    "RenditionPipeline",
    "RenditionSpec",
    "S3Credentials",
    "TranscodeError",
    "UploadError",
]
