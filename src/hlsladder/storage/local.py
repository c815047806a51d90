"""Local directory output."""

from pathlib import Path
from typing import Union

from loguru import logger

from ..core.types import Artifact, ManifestLocation
from ..encoding.destination import DirectoryDestination


class LocalSink:
    """Writes renditions and the manifest under one directory.

    Write failures are not retried; they propagate to the caller.
    """

    def __init__(self, directory: Union[str, Path]):
        """Initialize sink, creating the directory if missing.

        Args:
            directory: Output directory
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def destination(self) -> DirectoryDestination:
        """Let ffmpeg write straight into the output directory."""
        return DirectoryDestination(self.directory)

    def store(self, name: str, data: bytes) -> None:
        """Write one file.

        Args:
            name: File name relative to the output directory
            data: File contents
        """
        path = self.directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug(f"Wrote {path} ({len(data)} bytes)")

    def store_artifact(self, artifact: Artifact) -> None:
        """Place an engine artifact, skipping files already in place."""
        if artifact.path is not None and artifact.path.parent.resolve() == self.directory.resolve():
            return
        self.store(artifact.name, artifact.read_bytes())

    def location(self, name: str) -> ManifestLocation:
        return ManifestLocation(str(self.directory / name))

    def finalize(self, manifest_name: str) -> ManifestLocation:
        """Nothing left to deliver; report where the manifest is."""
        location = self.location(manifest_name)
        logger.info(f"Output written to {self.directory}")
        return location
