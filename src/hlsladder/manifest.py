"""Master playlist rendering."""

from typing import Iterable

from .core.types import RenditionSpec

HEADER = "#EXTM3U\n"


def stream_entry(spec: RenditionSpec) -> str:
    """Attribute line plus variant playlist path for one rendition."""
    return (
        f"#EXT-X-STREAM-INF:BANDWIDTH={spec.bandwidth},RESOLUTION={spec.dimensions}\n"
        f"{spec.playlist_name}\n"
    )


def build_master_playlist(renditions: Iterable[RenditionSpec]) -> str:
    """Render the master playlist.

    Entries keep the given order; players probe earlier entries first.

    Args:
        renditions: Renditions that were all produced successfully

    Returns:
        Playlist text
    """
    return HEADER + "".join(stream_entry(spec) for spec in renditions)
