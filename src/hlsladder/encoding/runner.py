"""Transcode job runner.

Runs ffmpeg once per rendition with a fixed HLS option set and turns its
``-progress`` event stream into percentage callbacks and a single
success/failure result.
"""

import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import ffmpeg
from loguru import logger

from ..config import default_config as defaults
from ..core.errors import TranscodeError
from ..core.types import Artifact, RenditionSpec
from ..utils.validation import validate_input_file
from .destination import Destination

ProgressCallback = Callable[[str, float], None]

# Machine readable progress on stdout, no interactive stats on stderr
PROGRESS_ARGS = ('-nostats', '-loglevel', 'error', '-progress', 'pipe:1')
STDERR_TAIL = 2000


def hls_output_options(segment_pattern: str) -> Dict[str, Union[str, int]]:
    """Options shared by every HLS output.

    Args:
        segment_pattern: Path pattern for the .ts segments

    Returns:
        Keyword arguments for ffmpeg.output()
    """
    return {
        'vcodec': defaults.VIDEO_CODEC,
        'acodec': defaults.AUDIO_CODEC,
        'preset': defaults.X264_PRESET,
        'crf': defaults.CRF,
        'sc_threshold': defaults.SC_THRESHOLD,
        'g': defaults.GOP_SIZE,
        'keyint_min': defaults.KEYINT_MIN,
        'hls_time': defaults.HLS_TIME,
        'hls_list_size': defaults.HLS_LIST_SIZE,
        'hls_segment_filename': segment_pattern,
        'format': 'hls',
    }


class TranscodeJobRunner:
    """Invokes ffmpeg for one rendition at a time.

    The runner never retries; a failed job is reported as TranscodeError
    and the caller decides what happens next.
    """

    def __init__(
        self,
        ffmpeg_path: Union[str, Path] = defaults.FFMPEG,
        ffprobe_path: Union[str, Path] = defaults.FFPROBE
    ):
        """Initialize runner.

        Args:
            ffmpeg_path: Path to ffmpeg binary
            ffprobe_path: Path to ffprobe binary
        """
        self.ffmpeg_path = str(ffmpeg_path)
        self.ffprobe_path = str(ffprobe_path)
        self._durations: Dict[Path, Optional[float]] = {}

    def build_command(self, source: Path, spec: RenditionSpec, output_dir: Path) -> List[str]:
        """Build the ffmpeg command for one rendition.

        The bitrate is passed as an integer because ffmpeg reads a
        lowercase "m" suffix as milli.

        Args:
            source: Source video
            spec: Rendition to produce
            output_dir: Directory for the playlist and segments

        Returns:
            Command line as a list of arguments
        """
        segment_pattern = defaults.SEGMENT_PATTERN.format(label=spec.label)
        stream = ffmpeg.input(str(source))
        stream = ffmpeg.output(
            stream,
            str(output_dir / spec.playlist_name),
            s=spec.dimensions,
            video_bitrate=spec.bandwidth,
            **hls_output_options(str(output_dir / segment_pattern))
        )
        return (
            stream.global_args(*PROGRESS_ARGS)
            .overwrite_output()
            .compile(cmd=self.ffmpeg_path)
        )

    def probe_duration(self, source: Path, label: str) -> Optional[float]:
        """Get source duration in seconds, cached per source.

        Returns:
            Duration, or None if ffprobe does not report one

        Raises:
            TranscodeError: If ffprobe fails
        """
        if source in self._durations:
            return self._durations[source]

        try:
            probe = ffmpeg.probe(str(source), cmd=self.ffprobe_path)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode(errors='replace') if e.stderr else None
            logger.error(f"ffprobe failed for {source}: {stderr or e}")
            raise TranscodeError(label, f"Could not probe {source.name}", stderr)
        except OSError as e:
            raise TranscodeError(label, f"Could not start ffprobe: {e}")

        duration = None
        try:
            duration = float(probe.get('format', {}).get('duration'))
        except (TypeError, ValueError):
            logger.warning(f"No duration reported for {source}, progress will not be shown")
        if duration is not None and duration <= 0:
            duration = None

        self._durations[source] = duration
        return duration

    def run(
        self,
        source_path: Union[str, Path],
        spec: RenditionSpec,
        destination: Destination,
        on_progress: Optional[ProgressCallback] = None
    ) -> List[Artifact]:
        """Transcode one rendition.

        Args:
            source_path: Source video, must exist and be readable
            spec: Rendition to produce
            destination: Where ffmpeg writes its output
            on_progress: Optional callback receiving (label, percent)

        Returns:
            Files produced by ffmpeg, playlist and segments

        Raises:
            ConfigurationError: If the source is not a readable file
            TranscodeError: If ffmpeg fails or never signals completion
        """
        source = validate_input_file(source_path)
        duration = self.probe_duration(source, spec.label)

        output_dir = destination.prepare()
        try:
            cmd = self.build_command(source, spec, output_dir)
            logger.info(f"Transcoding {source.name} to {spec.label} ({spec.dimensions} @ {spec.bitrate})")
            self.run_command(cmd, spec.label, duration, on_progress)
            artifacts = destination.collect()
        finally:
            destination.release()

        logger.info(f"{spec.label} finished with {len(artifacts)} files")
        return artifacts

    def run_command(
        self,
        cmd: List[str],
        label: str,
        duration: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> None:
        """Run an ffmpeg command that reports progress on stdout.

        Completion requires exit status 0 and an explicit progress=end
        event.

        Args:
            cmd: Command built with PROGRESS_ARGS
            label: Name used in progress callbacks and errors
            duration: Input duration for percentages, None to skip them
            on_progress: Optional callback receiving (label, percent)

        Raises:
            TranscodeError: If ffmpeg cannot start, fails or stops early
        """
        logger.debug(f"Running command: {' '.join(cmd)}")
        finished = False

        with tempfile.TemporaryFile() as stderr:
            try:
                process = subprocess.Popen(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=stderr,
                    text=True,
                    errors='replace'
                )
            except OSError as e:
                logger.error(f"Could not start ffmpeg for {label}: {e}")
                raise TranscodeError(label, f"Could not start ffmpeg: {e}")

            drained = False
            try:
                for line in process.stdout:
                    key, _, value = line.strip().partition('=')
                    if key in ('out_time_us', 'out_time_ms'):
                        # Both keys carry microseconds
                        percent = self._percent(value, duration)
                        if percent is not None and on_progress:
                            on_progress(label, percent)
                    elif key == 'progress' and value == 'end':
                        finished = True
                drained = True
            finally:
                if not drained:
                    process.kill()
                process.wait()

            stderr.seek(0)
            tail = stderr.read()[-STDERR_TAIL:]
            error_output = tail.decode(errors='replace').strip() or None

        if process.returncode != 0:
            logger.error(f"ffmpeg failed for {label} (exit {process.returncode}): {error_output}")
            raise TranscodeError(
                label, f"ffmpeg exited with code {process.returncode}", error_output
            )
        if not finished:
            logger.error(f"ffmpeg exited without signalling completion for {label}")
            raise TranscodeError(label, "ffmpeg exited without signalling completion", error_output)

        if on_progress:
            on_progress(label, 100.0)

    @staticmethod
    def _percent(value: str, duration: Optional[float]) -> Optional[float]:
        if not duration:
            return None
        try:
            elapsed = int(value) / 1_000_000
        except ValueError:
            return None  # N/A before the first frame
        return max(0.0, min(100.0, elapsed / duration * 100))
