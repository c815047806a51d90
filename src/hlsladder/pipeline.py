"""Adaptive rendition pipeline.

Drives the job runner across the requested renditions, one at a time and in
the order given, then writes the master playlist and hands everything to
the selected output sink.
"""

import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from loguru import logger

from .config import AppConfig
from .config import default_config as defaults
from .core.errors import TranscodeError
from .core.types import ConversionJob, JobStatus, ManifestLocation, RenditionSpec, RunState
from .encoding.runner import ProgressCallback, TranscodeJobRunner
from .manifest import build_master_playlist
from .storage.provisioner import S3Credentials, create_s3_client
from .storage.targets import LocalTarget, OutputSink, RemoteTarget, open_sink
from .utils.validation import validate_input_file, validate_unique_labels


class RenditionPipeline:
    """Converts one source into an HLS rendition ladder.

    A pipeline holds per-run state (jobs, stage reached, failure reason)
    and is not meant to be shared between concurrent runs.

    Attributes:
        state: Stage reached by the current or last run
        failure: Reason the last run failed, if it did
        jobs: Jobs of the current or last run
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        runner: Optional[TranscodeJobRunner] = None,
        client_factory: Callable[[S3Credentials], object] = create_s3_client,
        sleep: Callable[[float], None] = time.sleep,
        on_progress: Optional[ProgressCallback] = None
    ):
        """Initialize pipeline.

        Args:
            config: Application configuration
            runner: Job runner, built from config when omitted
            client_factory: Builds the S3 client for remote targets
            sleep: Function used to wait between upload attempts
            on_progress: Optional callback receiving (label, percent)
        """
        self.config = config or AppConfig()
        self.runner = runner or TranscodeJobRunner(
            self.config.ffmpeg_path, self.config.ffprobe_path
        )
        self._client_factory = client_factory
        self._sleep = sleep
        self._on_progress = on_progress

        self.state = RunState.IDLE
        self.failure: Optional[str] = None
        self.jobs: List[ConversionJob] = []

    def convert(
        self,
        source_path: Union[str, Path],
        renditions: Sequence[RenditionSpec],
        target: Union[LocalTarget, RemoteTarget]
    ) -> ManifestLocation:
        """Produce every rendition and the master playlist.

        Stops at the first failure. Nothing produced before the failure is
        removed, and no master playlist is written.

        Args:
            source_path: Source video
            renditions: Renditions in the order they should be listed
            target: Where output goes

        Returns:
            Location of the master playlist

        Raises:
            ConfigurationError: If inputs or remote settings are invalid
            ProvisionError: If the bucket cannot be prepared
            TranscodeError: If any rendition fails
            UploadError: If an object cannot be uploaded
        """
        self.state = RunState.IDLE
        self.failure = None
        self.jobs = []

        try:
            location = self._run(Path(source_path), list(renditions), target)
        except Exception as e:
            self.state = RunState.FAILED
            self.failure = str(e)
            logger.error(f"Conversion of {source_path} failed: {e}")
            raise

        self.state = RunState.DONE
        logger.info(f"Master playlist available at {location}")
        return location

    def _run(
        self,
        source_path: Path,
        renditions: List[RenditionSpec],
        target: Union[LocalTarget, RemoteTarget]
    ) -> ManifestLocation:
        validate_unique_labels(spec.label for spec in renditions)
        source = validate_input_file(source_path)

        if isinstance(target, RemoteTarget):
            self.state = RunState.PROVISIONING
        sink = open_sink(
            target,
            client_factory=self._client_factory,
            retries=self.config.upload_retries,
            retry_delay=self.config.retry_delay,
            sleep=self._sleep,
        )

        self.state = RunState.TRANSCODING
        self.jobs = [ConversionJob(source, spec) for spec in renditions]
        self._transcode_all(sink)

        self.state = RunState.MANIFEST
        playlist = build_master_playlist(job.spec for job in self.jobs)
        sink.store(defaults.MASTER_PLAYLIST, playlist.encode('utf-8'))
        logger.info(f"Master playlist created with {len(self.jobs)} renditions")

        self.state = RunState.DELIVERING
        return sink.finalize(defaults.MASTER_PLAYLIST)

    def _transcode_all(self, sink: OutputSink) -> None:
        destination = sink.destination()
        total = len(self.jobs)

        for index, job in enumerate(self.jobs, start=1):
            logger.info(f"Rendition {index}/{total}: {job.spec.label}")
            job.status = JobStatus.RUNNING
            try:
                job.artifacts = self.runner.run(
                    job.source_path, job.spec, destination, self._on_progress
                )
            except TranscodeError:
                job.status = JobStatus.FAILED
                raise
            job.status = JobStatus.SUCCEEDED

            for artifact in job.artifacts:
                sink.store_artifact(artifact)
            job.artifacts = []  # Owned by the sink from here on
