"""Type definitions for rendition pipelines."""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import default_config as defaults
from .errors import ConfigurationError

BITRATE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)([km]?)$", re.IGNORECASE)


def parse_bandwidth(bitrate: str) -> int:
    """Convert a bitrate string to bits per second.

    "800k" -> 800000, "1.5m" -> 1500000, "2000000" -> 2000000.

    Args:
        bitrate: Number with an optional k/m suffix (case-insensitive)

    Returns:
        Bandwidth rounded to the nearest integer

    Raises:
        ConfigurationError: If the string is not a bitrate
    """
    match = BITRATE_PATTERN.match(bitrate.strip())
    if not match:
        raise ConfigurationError(f"Invalid bitrate: {bitrate!r}")
    value, unit = match.groups()
    multiplier = {"k": 1000, "m": 1_000_000}.get(unit.lower(), 1)
    return round(float(value) * multiplier)


def resolve_dimensions(label: str) -> Tuple[int, int]:
    """Look up pixel dimensions for a resolution label.

    Unknown labels map to the fallback dimensions instead of failing.
    """
    dimensions = defaults.RESOLUTIONS.get(label)
    if dimensions is None:
        logger.warning(
            f"Unknown resolution {label}, using "
            f"{defaults.FALLBACK_RESOLUTION[0]}x{defaults.FALLBACK_RESOLUTION[1]}"
        )
        return defaults.FALLBACK_RESOLUTION
    return dimensions


class RenditionSpec(BaseModel):
    """One requested output rendition.

    Attributes:
        label: Resolution label (e.g. 720p)
        width: Output width in pixels
        height: Output height in pixels
        bitrate: Video bitrate with unit suffix (e.g. 3500k)
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="forbid")

    label: str = Field(min_length=1)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    bitrate: str

    @field_validator("bitrate")
    @classmethod
    def _check_bitrate(cls, value: str) -> str:
        if not BITRATE_PATTERN.match(value):
            raise ValueError(f"bitrate must look like 800k or 1.5m, got {value!r}")
        return value

    @classmethod
    def from_label(cls, label: str, bitrate: Optional[str] = None) -> "RenditionSpec":
        """Build a spec from a resolution label and optional bitrate.

        Missing bitrates come from the default ladder.

        Raises:
            ConfigurationError: If the bitrate is malformed
        """
        width, height = resolve_dimensions(label)
        if bitrate is None:
            bitrate = defaults.BITRATES.get(label, defaults.FALLBACK_BITRATE)
        try:
            return cls(label=label, width=width, height=height, bitrate=bitrate)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid rendition {label}", str(e))

    @property
    def bandwidth(self) -> int:
        """Bitrate in bits per second."""
        return parse_bandwidth(self.bitrate)

    @property
    def dimensions(self) -> str:
        """Dimensions formatted as WxH."""
        return f"{self.width}x{self.height}"

    @property
    def playlist_name(self) -> str:
        """File name of this rendition's own playlist."""
        return f"{self.label}.m3u8"


class JobStatus(Enum):
    """Lifecycle of a conversion job."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RunState(Enum):
    """Stage reached by a pipeline run."""
    IDLE = "idle"
    PROVISIONING = "provisioning"
    TRANSCODING = "transcoding"
    MANIFEST = "manifest"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"


@dataclass
class Artifact:
    """A file produced by the engine.

    Exactly one of data or path is set: captured output lives in memory,
    directory output stays where ffmpeg wrote it.
    """
    name: str
    data: Optional[bytes] = None
    path: Optional[Path] = None

    def read_bytes(self) -> bytes:
        """Return the artifact contents."""
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError(f"Artifact {self.name} has no contents")
        return self.path.read_bytes()


@dataclass
class ConversionJob:
    """Transcoding of one source into one rendition."""
    source_path: Path
    spec: RenditionSpec
    status: JobStatus = JobStatus.PENDING
    artifacts: List[Artifact] = field(default_factory=list)


@dataclass(frozen=True)
class ManifestLocation:
    """Where the master playlist ended up (path or s3:// URI)."""
    uri: str

    def __str__(self) -> str:
        return self.uri
