"""Tests for the rendition pipeline."""

import pytest

from hlsladder.config import AppConfig
from hlsladder.core.errors import ConfigurationError, ProvisionError, TranscodeError, UploadError
from hlsladder.core.types import JobStatus, RenditionSpec, RunState
from hlsladder.pipeline import RenditionPipeline
from hlsladder.storage.provisioner import S3Credentials
from hlsladder.storage.targets import LocalTarget, RemoteTarget

CREDENTIALS = S3Credentials(access_key_id='AKIA', secret_access_key='secret', region='us-east-1')

EXPECTED_MASTER = (
    "#EXTM3U\n"
    "#EXT-X-STREAM-INF:BANDWIDTH=3500000,RESOLUTION=1280x720\n720p.m3u8\n"
    "#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360\n360p.m3u8\n"
    "#EXT-X-STREAM-INF:BANDWIDTH=6000000,RESOLUTION=1920x1080\n1080p.m3u8\n"
)


@pytest.fixture
def config():
    return AppConfig(ffmpeg_path='ffmpeg', ffprobe_path='ffprobe', retry_delay=1.0)


@pytest.fixture
def make_pipeline(config, fake_s3):
    """Build pipelines wired to fakes, recording back-off waits."""
    def _make(runner, client=None, sleeps=None):
        return RenditionPipeline(
            config,
            runner=runner,
            client_factory=lambda credentials: client or fake_s3,
            sleep=(sleeps if sleeps is not None else []).append,
        )
    return _make


class TestLocalOutput:
    """Test runs writing to a local directory."""

    def test_success(self, make_pipeline, fake_runner, mock_video_file, ladder, tmp_path):
        """Test renditions run in order and the master lists them in order."""
        out = tmp_path / 'out'
        pipeline = make_pipeline(fake_runner)

        location = pipeline.convert(mock_video_file, ladder, LocalTarget(directory=out))

        assert fake_runner.calls == ['720p', '360p', '1080p']
        assert str(location) == str(out / 'master.m3u8')
        assert (out / 'master.m3u8').read_text() == EXPECTED_MASTER
        for label in ('720p', '360p', '1080p'):
            assert (out / f'{label}.m3u8').exists()
            assert (out / f'{label}_segment_000.ts').exists()
        assert pipeline.state is RunState.DONE
        assert [job.status for job in pipeline.jobs] == [JobStatus.SUCCEEDED] * 3

    def test_fail_fast(self, make_pipeline, make_runner, mock_video_file, ladder, tmp_path):
        """Test the first failure stops the run and no master is written."""
        out = tmp_path / 'out'
        runner = make_runner(fail_on={'360p'})
        pipeline = make_pipeline(runner)

        with pytest.raises(TranscodeError) as exc_info:
            pipeline.convert(mock_video_file, ladder, LocalTarget(directory=out))

        assert exc_info.value.label == '360p'
        assert runner.calls == ['720p', '360p']
        assert not (out / 'master.m3u8').exists()
        assert pipeline.state is RunState.FAILED
        assert '360p' in pipeline.failure
        assert [job.status for job in pipeline.jobs] == [
            JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.PENDING
        ]

    def test_partial_output_kept(self, make_pipeline, make_runner, mock_video_file, ladder, tmp_path):
        """Test files from before the failure are not cleaned up."""
        out = tmp_path / 'out'
        pipeline = make_pipeline(make_runner(fail_on={'1080p'}))

        with pytest.raises(TranscodeError):
            pipeline.convert(mock_video_file, ladder, LocalTarget(directory=out))

        assert (out / '720p.m3u8').exists()
        assert (out / '360p.m3u8').exists()
        assert (out / '1080p_segment_000.ts').exists()

    def test_progress_forwarded(self, config, fake_runner, mock_video_file, tmp_path):
        updates = []
        pipeline = RenditionPipeline(
            config, runner=fake_runner, on_progress=lambda label, pct: updates.append((label, pct))
        )

        pipeline.convert(
            mock_video_file, [RenditionSpec.from_label('240p')], LocalTarget(directory=tmp_path / 'o')
        )

        assert updates == [('240p', 50.0), ('240p', 100.0)]


class TestConfigurationErrors:
    """Test problems caught before any work starts."""

    def test_missing_source(self, make_pipeline, fake_runner, ladder, tmp_path):
        pipeline = make_pipeline(fake_runner)

        with pytest.raises(ConfigurationError):
            pipeline.convert(tmp_path / 'missing.mp4', ladder, LocalTarget(directory=tmp_path / 'o'))

        assert fake_runner.calls == []
        assert pipeline.state is RunState.FAILED

    def test_duplicate_labels(self, make_pipeline, fake_runner, mock_video_file, tmp_path):
        renditions = [RenditionSpec.from_label('720p'), RenditionSpec.from_label('720p', '1m')]

        with pytest.raises(ConfigurationError, match='more than once'):
            make_pipeline(fake_runner).convert(
                mock_video_file, renditions, LocalTarget(directory=tmp_path / 'o')
            )
        assert fake_runner.calls == []

    def test_no_renditions(self, make_pipeline, fake_runner, mock_video_file, tmp_path):
        with pytest.raises(ConfigurationError):
            make_pipeline(fake_runner).convert(mock_video_file, [], LocalTarget(directory=tmp_path / 'o'))

    def test_incomplete_remote(self, make_pipeline, fake_runner, mock_video_file, ladder, fake_s3):
        """Test missing credentials fail without touching the bucket."""
        with pytest.raises(ConfigurationError, match='access_key_id'):
            make_pipeline(fake_runner).convert(
                mock_video_file, ladder, RemoteTarget(bucket='videos', credentials=S3Credentials(
                    region='us-east-1', secret_access_key='secret'
                ))
            )
        assert fake_runner.calls == []
        assert fake_s3.created == []


class TestRemoteOutput:
    """Test runs delivering to a bucket."""

    def test_streaming_upload(self, make_pipeline, fake_runner, fake_s3, mock_video_file, ladder):
        """Test every file lands under the prefix with its content type."""
        pipeline = make_pipeline(fake_runner)

        location = pipeline.convert(
            mock_video_file, ladder, RemoteTarget(bucket='videos', prefix='clip', credentials=CREDENTIALS)
        )

        assert str(location) == 's3://videos/clip/master.m3u8'
        assert fake_s3.buckets == ['videos']
        assert fake_s3.objects['clip/master.m3u8'].decode() == EXPECTED_MASTER
        assert fake_s3.put_calls[-1] == 'clip/master.m3u8'
        assert fake_s3.content_types['clip/720p.m3u8'] == 'application/vnd.apple.mpegurl'
        assert fake_s3.content_types['clip/1080p_segment_000.ts'] == 'video/MP2T'

    def test_staged_matches_streaming(self, make_pipeline, make_s3, make_runner,
                                      mock_video_file, ladder, tmp_path):
        """Test both delivery modes produce the same objects."""
        streamed = make_s3()
        staged = make_s3()
        staging = tmp_path / 'staging'

        make_pipeline(make_runner(), client=streamed).convert(
            mock_video_file, ladder, RemoteTarget(bucket='videos', prefix='clip', credentials=CREDENTIALS)
        )
        make_pipeline(make_runner(), client=staged).convert(
            mock_video_file, ladder,
            RemoteTarget(bucket='videos', prefix='clip', credentials=CREDENTIALS, staging_dir=staging)
        )

        assert sorted(staged.objects) == [
            "clip/1080p.m3u8",
            "clip/1080p_segment_000.ts",
            "clip/360p.m3u8",
            "clip/360p_segment_000.ts",
            "clip/720p.m3u8",
            "clip/720p_segment_000.ts",
            "clip/master.m3u8",
        ]
        assert staged.objects == streamed.objects
        assert not staging.exists()

    def test_provision_failure_before_transcoding(self, make_pipeline, fake_runner, fake_s3,
                                                  make_client_error, mock_video_file, ladder):
        fake_s3.create_error = make_client_error('AccessDenied', 'CreateBucket')
        pipeline = make_pipeline(fake_runner)

        with pytest.raises(ProvisionError):
            pipeline.convert(mock_video_file, ladder, RemoteTarget(bucket='videos', credentials=CREDENTIALS))

        assert fake_runner.calls == []
        assert pipeline.state is RunState.FAILED

    def test_upload_retried(self, make_pipeline, fake_runner, make_s3, mock_video_file, ladder):
        """Test a transient failure is retried and the run succeeds."""
        client = make_s3(failures={'clip/360p.m3u8': 2})
        sleeps = []

        make_pipeline(fake_runner, client=client, sleeps=sleeps).convert(
            mock_video_file, ladder, RemoteTarget(bucket='videos', prefix='clip', credentials=CREDENTIALS)
        )

        assert sleeps == [1.0, 2.0]
        assert 'clip/master.m3u8' in client.objects

    def test_upload_gives_up(self, make_pipeline, fake_runner, make_s3, mock_video_file, ladder):
        """Test an exhausted upload aborts the remaining renditions."""
        client = make_s3(failures={'clip/720p.m3u8': 3})
        pipeline = make_pipeline(fake_runner, client=client)

        with pytest.raises(UploadError):
            pipeline.convert(
                mock_video_file, ladder, RemoteTarget(bucket='videos', prefix='clip', credentials=CREDENTIALS)
            )

        assert fake_runner.calls == ['720p']
        assert 'clip/master.m3u8' not in client.put_calls
        assert pipeline.state is RunState.FAILED

    def test_staged_failure_keeps_staging(self, make_pipeline, make_runner, mock_video_file,
                                          ladder, tmp_path):
        staging = tmp_path / 'staging'

        with pytest.raises(TranscodeError):
            make_pipeline(make_runner(fail_on={'1080p'})).convert(
                mock_video_file, ladder,
                RemoteTarget(bucket='videos', credentials=CREDENTIALS, staging_dir=staging)
            )

        assert (staging / '720p.m3u8').exists()
        assert not (staging / 'master.m3u8').exists()
