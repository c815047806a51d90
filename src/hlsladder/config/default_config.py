"""Default configuration values."""

import shutil
from pathlib import Path


# Try to find ffmpeg/ffprobe in $HOME/ffmpeg first, fallback to system
HOME_FFMPEG_DIR = Path.home() / "ffmpeg"
if (HOME_FFMPEG_DIR / "ffmpeg").exists() and (HOME_FFMPEG_DIR / "ffprobe").exists():
    FFMPEG = HOME_FFMPEG_DIR / "ffmpeg"
    FFPROBE = HOME_FFMPEG_DIR / "ffprobe"
else:
    FFMPEG = Path(shutil.which("ffmpeg") or "ffmpeg")
    FFPROBE = Path(shutil.which("ffprobe") or "ffprobe")

# Rendition ladder
RESOLUTIONS = {
    "144p": (256, 144),
    "240p": (426, 240),
    "360p": (640, 360),
    "480p": (854, 480),
    "720p": (1280, 720),
    "1080p": (1920, 1080),
    "1440p": (2560, 1440),
    "2160p": (3840, 2160),
}
FALLBACK_RESOLUTION = (1280, 720)  # Used for labels outside RESOLUTIONS

BITRATES = {
    "144p": "250k",
    "240p": "500k",
    "360p": "1000k",
    "480p": "1500k",
    "720p": "3500k",
    "1080p": "6000k",
    "1440p": "12000k",
    "2160p": "25000k",
}
FALLBACK_BITRATE = "3500k"

# x264 / HLS settings shared by every rendition
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
X264_PRESET = "fast"
CRF = 22
SC_THRESHOLD = 0  # Disable scene-cut keyframes so segments align across renditions
GOP_SIZE = 48
KEYINT_MIN = 48
HLS_TIME = 4  # Segment duration in seconds
HLS_LIST_SIZE = 0  # Keep every segment in the playlist (VOD)

# Output naming
MASTER_PLAYLIST = "master.m3u8"
SEGMENT_PATTERN = "{label}_segment_%03d.ts"

# Single-file conversion
CONTAINER_FORMATS = ("mp4", "webm", "avi", "mov", "mkv", "m3u8")
DEFAULT_FORMAT = "mp4"
DEFAULT_RESOLUTION = "720p"
DEFAULT_BITRATE = "1000k"

# Upload settings
UPLOAD_RETRIES = 3
RETRY_DELAY = 1.0  # Seconds, multiplied by the attempt number
DEFAULT_REGION = "us-east-1"
