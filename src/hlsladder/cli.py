"""Command line interface for hlsladder."""
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click

from .config import AppConfig
from .config import default_config as defaults
from .core.errors import PipelineError
from .core.types import RenditionSpec
from .encoding.convert import ConversionOptions, convert_video, merge_videos
from .encoding.runner import TranscodeJobRunner
from .formatting import ProgressBars, TerminalFormatter
from .pipeline import RenditionPipeline
from .storage.provisioner import S3Credentials
from .storage.targets import LocalTarget, RemoteTarget


def parse_renditions(values: Tuple[str, ...]) -> List[RenditionSpec]:
    """Turn LABEL or LABEL=BITRATE arguments into specs, keeping order."""
    renditions = []
    for value in values:
        label, _, bitrate = value.partition('=')
        renditions.append(RenditionSpec.from_label(label.strip(), bitrate.strip() or None))
    return renditions


def require_binaries(config: AppConfig, fmt: TerminalFormatter) -> None:
    """Exit early when ffmpeg or ffprobe cannot be found."""
    try:
        config.check_binaries()
    except FileNotFoundError as e:
        fmt.print_error(str(e))
        sys.exit(1)


@click.group()
@click.option('--log-level', default='INFO', show_default=True, help='Logging level')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also log to this file')
@click.option('--ffmpeg', 'ffmpeg_path', type=click.Path(), help='ffmpeg binary')
@click.option('--ffprobe', 'ffprobe_path', type=click.Path(), help='ffprobe binary')
@click.pass_context
def main(ctx: click.Context, log_level: str, log_file: Optional[str],
         ffmpeg_path: Optional[str], ffprobe_path: Optional[str]) -> None:
    """Convert videos into adaptive HLS packages."""
    settings = {'log_level': log_level, 'log_file': log_file}
    if ffmpeg_path:
        settings['ffmpeg_path'] = ffmpeg_path
    if ffprobe_path:
        settings['ffprobe_path'] = ffprobe_path
    ctx.obj = AppConfig(**settings)


@main.command()
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.option('-r', '--resolution', 'resolutions', multiple=True, required=True,
              help='LABEL or LABEL=BITRATE, repeat in the order players should see them')
@click.option('-o', '--output', type=click.Path(file_okay=False),
              help='Output directory (default: outputs/<source name>)')
@click.option('--bucket', envvar='HLSLADDER_BUCKET', help='Upload to this S3 bucket')
@click.option('--prefix', help='Key prefix in the bucket (default: source name)')
@click.option('--staging', type=click.Path(file_okay=False),
              help='Stage output here and upload it at the end')
@click.option('--access-key-id', envvar='AWS_ACCESS_KEY_ID')
@click.option('--secret-access-key', envvar='AWS_SECRET_ACCESS_KEY')
@click.option('--region', envvar='AWS_REGION', default=defaults.DEFAULT_REGION, show_default=True)
@click.pass_obj
def hls(config: AppConfig, source: str, resolutions: Tuple[str, ...], output: Optional[str],
        bucket: Optional[str], prefix: Optional[str], staging: Optional[str],
        access_key_id: Optional[str], secret_access_key: Optional[str], region: Optional[str]) -> None:
    """Produce an adaptive HLS package from SOURCE."""
    fmt = TerminalFormatter()
    if staging and not bucket:
        raise click.UsageError('--staging requires --bucket')
    require_binaries(config, fmt)

    stem = Path(source).stem
    progress = ProgressBars()

    try:
        renditions = parse_renditions(resolutions)
        if bucket:
            target = RemoteTarget(
                bucket=bucket,
                prefix=stem if prefix is None else prefix,
                credentials=S3Credentials(
                    access_key_id=access_key_id,
                    secret_access_key=secret_access_key,
                    region=region,
                ),
                staging_dir=staging,
            )
        else:
            target = LocalTarget(directory=output or Path('outputs') / stem)

        fmt.print_renditions(renditions)
        pipeline = RenditionPipeline(config, on_progress=progress)
        location = pipeline.convert(source, renditions, target)
    except (PipelineError, OSError) as e:
        fmt.print_error(f"Adaptive HLS conversion failed: {e}")
        sys.exit(1)
    finally:
        progress.close()

    fmt.print_success("Adaptive HLS conversion complete!")
    click.echo(str(location))


@main.command()
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.option('--format', 'fmt_name', type=click.Choice(defaults.CONTAINER_FORMATS),
              default=defaults.DEFAULT_FORMAT, show_default=True)
@click.option('--resolution', default=defaults.DEFAULT_RESOLUTION, show_default=True)
@click.option('--bitrate', default=defaults.DEFAULT_BITRATE, show_default=True)
@click.option('-o', '--output', type=click.Path(dir_okay=False),
              help='Output file (default: outputs/<name>/<resolution>/<name>.<format>)')
@click.pass_obj
def convert(config: AppConfig, source: str, fmt_name: str, resolution: str,
            bitrate: str, output: Optional[str]) -> None:
    """Convert SOURCE to another format and resolution."""
    fmt = TerminalFormatter()
    require_binaries(config, fmt)
    stem = Path(source).stem
    output_path = Path(output) if output else Path('outputs') / stem / resolution / f"{stem}.{fmt_name}"
    progress = ProgressBars()

    try:
        options = ConversionOptions.create(
            format=fmt_name, resolution=resolution, bitrate=bitrate, output_path=output_path
        )
        runner = TranscodeJobRunner(config.ffmpeg_path, config.ffprobe_path)
        written = convert_video(source, options, runner=runner, on_progress=progress)
    except (PipelineError, OSError) as e:
        fmt.print_error(f"Failed to convert video: {e}")
        sys.exit(1)
    finally:
        progress.close()

    fmt.print_success("Conversion complete!")
    click.echo(str(written))


@main.command()
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('-o', '--output', type=click.Path(dir_okay=False), required=True)
@click.pass_obj
def merge(config: AppConfig, inputs: Tuple[str, ...], output: str) -> None:
    """Concatenate INPUTS into one file without re-encoding."""
    fmt = TerminalFormatter()
    require_binaries(config, fmt)
    try:
        runner = TranscodeJobRunner(config.ffmpeg_path, config.ffprobe_path)
        written = merge_videos(inputs, output, runner=runner)
    except (PipelineError, OSError) as e:
        fmt.print_error(f"Failed to merge videos: {e}")
        sys.exit(1)

    fmt.print_success("Merge complete!")
    click.echo(str(written))


if __name__ == '__main__':
    main()
