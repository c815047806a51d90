"""Core types and errors."""

from .errors import (
    ConfigurationError,
    PipelineError,
    ProvisionError,
    TranscodeError,
    UploadError,
)
from .types import (
    Artifact,
    ConversionJob,
    JobStatus,
    ManifestLocation,
    RenditionSpec,
    RunState,
    parse_bandwidth,
    resolve_dimensions,
)

__all__ = [
    "Artifact",
    "ConfigurationError",
    "ConversionJob",
    "JobStatus",
    "ManifestLocation",
    "PipelineError",
    "ProvisionError",
    "RenditionSpec",
    "RunState",
    "TranscodeError",
    "UploadError",
    "parse_bandwidth",
    "resolve_dimensions",
]
