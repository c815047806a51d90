"""Single-file conversion and merging."""

from pathlib import Path
from typing import Iterable, Literal, Optional, Union

import ffmpeg
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import default_config as defaults
from ..core.errors import ConfigurationError, TranscodeError
from ..core.types import BITRATE_PATTERN, parse_bandwidth, resolve_dimensions
from ..utils.validation import validate_input_file, validate_input_files
from .runner import PROGRESS_ARGS, ProgressCallback, TranscodeJobRunner, hls_output_options

# ffmpeg muxer names that differ from the file extension
MUXERS = {'mkv': 'matroska'}


class ConversionOptions(BaseModel):
    """Settings for converting one file to one format.

    Unknown fields are rejected rather than ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra='forbid'
    )

    format: Literal['mp4', 'webm', 'avi', 'mov', 'mkv', 'm3u8'] = Field(
        default=defaults.DEFAULT_FORMAT,
        description="Output container"
    )
    resolution: str = Field(
        default=defaults.DEFAULT_RESOLUTION,
        description="Resolution label"
    )
    bitrate: str = Field(
        default=defaults.DEFAULT_BITRATE,
        description="Video bitrate (e.g. 1000k)"
    )
    output_path: Path = Field(description="Output file path")

    @field_validator('bitrate')
    @classmethod
    def _check_bitrate(cls, value: str) -> str:
        if not BITRATE_PATTERN.match(value):
            raise ValueError(f"bitrate must look like 800k or 1.5m, got {value!r}")
        return value

    @classmethod
    def create(cls, **fields) -> 'ConversionOptions':
        """Build options, reporting bad fields as ConfigurationError."""
        try:
            return cls(**fields)
        except ValidationError as e:
            raise ConfigurationError("Invalid conversion options", str(e))


def convert_video(
    source_path: Union[str, Path],
    options: ConversionOptions,
    runner: Optional[TranscodeJobRunner] = None,
    on_progress: Optional[ProgressCallback] = None
) -> Path:
    """Convert a video to another format and resolution.

    HLS output is written as output.m3u8 next to options.output_path.

    Args:
        source_path: Source video
        options: Conversion settings
        runner: Runner used to execute ffmpeg
        on_progress: Optional callback receiving (format, percent)

    Returns:
        Path of the written file

    Raises:
        ConfigurationError: If the source is not a readable file
        TranscodeError: If ffmpeg fails
    """
    runner = runner or TranscodeJobRunner()
    source = validate_input_file(source_path)
    output_path = options.output_path
    output_path.parent.mkdir(parents=True, exist_ok=True)

    width, height = resolve_dimensions(options.resolution)
    scaling = {'s': f"{width}x{height}", 'video_bitrate': parse_bandwidth(options.bitrate)}

    if options.format == 'm3u8':
        output_path = output_path.parent / 'output.m3u8'
        kwargs = hls_output_options(str(output_path.parent / 'output_%03d.ts'))
    else:
        kwargs = {'format': MUXERS.get(options.format, options.format)}

    cmd = (
        ffmpeg.input(str(source))
        .output(str(output_path), **scaling, **kwargs)
        .global_args(*PROGRESS_ARGS)
        .overwrite_output()
        .compile(cmd=runner.ffmpeg_path)
    )

    logger.info(f"Converting {source.name} to {options.format} at {options.resolution}")
    duration = runner.probe_duration(source, options.format)
    runner.run_command(cmd, options.format, duration, on_progress)
    logger.info(f"Conversion finished: {output_path}")
    return output_path


def merge_videos(
    paths: Iterable[Union[str, Path]],
    output_path: Union[str, Path],
    runner: Optional[TranscodeJobRunner] = None
) -> Path:
    """Concatenate videos without re-encoding.

    Args:
        paths: Videos to merge, in order (at least two)
        output_path: Merged file

    Returns:
        Path of the merged file

    Raises:
        ConfigurationError: If fewer than two readable inputs are given
        TranscodeError: If ffmpeg fails
    """
    runner = runner or TranscodeJobRunner()
    sources = validate_input_files(paths)
    if len(sources) < 2:
        raise ConfigurationError("At least 2 video files are required to merge")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    concat_file = output_path.parent / f"{output_path.stem}.concat.txt"

    try:
        concat_file.write_text(''.join(f"file '{p.resolve()}'\n" for p in sources))
    except OSError as e:
        raise TranscodeError('merge', f"Could not write concat list: {e}")

    try:
        cmd = (
            ffmpeg.input(str(concat_file), format='concat', safe=0)
            .output(str(output_path), c='copy')
            .global_args(*PROGRESS_ARGS)
            .overwrite_output()
            .compile(cmd=runner.ffmpeg_path)
        )
        logger.info(f"Merging {len(sources)} videos into {output_path}")
        runner.run_command(cmd, 'merge')
    finally:
        concat_file.unlink(missing_ok=True)

    logger.info(f"Merge complete: {output_path}")
    return output_path
