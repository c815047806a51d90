"""Places ffmpeg can write a rendition to."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from loguru import logger

from ..core.types import Artifact


class Destination(Protocol):
    """Writable target handed to the job runner."""

    def prepare(self) -> Path:
        """Return a directory ffmpeg can write into."""
        ...

    def collect(self) -> List[Artifact]:
        """Return the files produced since prepare()."""
        ...

    def release(self) -> None:
        """Drop any temporary resources."""
        ...


class DirectoryDestination:
    """ffmpeg writes straight into an output directory.

    Only files that appeared or changed since prepare() are reported, so
    earlier renditions in the same directory are not picked up again.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._before: Dict[Path, int] = {}

    def _snapshot(self) -> Dict[Path, int]:
        return {
            p: p.stat().st_mtime_ns
            for p in self.directory.iterdir() if p.is_file()
        }

    def prepare(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._before = self._snapshot()
        return self.directory

    def collect(self) -> List[Artifact]:
        produced = sorted(
            path for path, mtime in self._snapshot().items()
            if self._before.get(path) != mtime
        )
        return [Artifact(name=p.name, path=p) for p in produced]

    def release(self) -> None:
        self._before = {}


class CapturedDestination:
    """ffmpeg output is captured in memory for immediate forwarding.

    The HLS muxer writes many files, so ffmpeg gets a private scratch
    directory that is read back into memory and removed once the job ends.
    """

    def __init__(self, scratch_root: Optional[Path] = None):
        self._scratch_root = scratch_root
        self._scratch: Optional[Path] = None

    def prepare(self) -> Path:
        self.release()
        self._scratch = Path(tempfile.mkdtemp(prefix="hlsladder-", dir=self._scratch_root))
        logger.debug(f"Capturing engine output in {self._scratch}")
        return self._scratch

    def collect(self) -> List[Artifact]:
        if self._scratch is None:
            return []
        return [
            Artifact(name=p.name, data=p.read_bytes())
            for p in sorted(self._scratch.iterdir()) if p.is_file()
        ]

    def release(self) -> None:
        if self._scratch is not None:
            shutil.rmtree(self._scratch, ignore_errors=True)
            self._scratch = None
