"""ffmpeg invocation for renditions, conversions and merges."""

from .convert import ConversionOptions, convert_video, merge_videos
from .destination import CapturedDestination, Destination, DirectoryDestination
from .runner import ProgressCallback, TranscodeJobRunner

__all__ = [
    'CapturedDestination',
    'ConversionOptions',
    'Destination',
    'DirectoryDestination',
    'ProgressCallback',
    'TranscodeJobRunner',
    'convert_video',
    'merge_videos',
]
