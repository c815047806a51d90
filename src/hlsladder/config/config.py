"""Configuration module for pipeline settings."""

import shutil
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from . import default_config as defaults


class AppConfig(BaseModel):
    """Configuration shared by every pipeline run."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_default=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid"
    )

    # Engine binaries
    ffmpeg_path: Path = Field(
        default_factory=lambda: defaults.FFMPEG,
        description="FFmpeg binary path"
    )
    ffprobe_path: Path = Field(
        default_factory=lambda: defaults.FFPROBE,
        description="FFprobe binary path"
    )

    # Upload settings
    upload_retries: int = Field(
        default=defaults.UPLOAD_RETRIES,
        ge=1,
        le=10,
        description="Attempts per uploaded object"
    )
    retry_delay: float = Field(
        default=defaults.RETRY_DELAY,
        ge=0,
        description="Back-off in seconds, multiplied by the attempt number"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Log file path"
    )

    def __init__(self, **data):
        """Initialize config with validation."""
        super().__init__(**data)
        self._setup_logging()

    def check_binaries(self) -> None:
        """Make sure ffmpeg and ffprobe can be found.

        Raises:
            FileNotFoundError: If either binary is missing
        """
        for binary in (self.ffmpeg_path, self.ffprobe_path):
            if not binary.exists() and not shutil.which(str(binary)):
                raise FileNotFoundError(f"Required binary not found: {binary}")

    def _setup_logging(self) -> None:
        """Configure logging based on settings."""
        logger.remove()  # Remove default handler

        # Console handler goes to stderr so stdout stays machine readable
        logger.add(
            sink=sys.stderr,
            level=self.log_level.upper(),
            format="<level>{level}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:"
                   "<cyan>{line}</cyan> - <level>{message}</level>"
        )

        if self.log_file:
            logger.add(
                sink=str(self.log_file),
                level=self.log_level.upper(),
                rotation="100 MB",
                retention="1 week"
            )
