"""HLS media playlist parsing, rendering and publishing."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from variantgen.errors import PlaylistSynthesisError


# Tags allowed before the first segment; their values are either kept on the
# model or regenerated on rendering.
HEADER_TAGS = (
    "#EXT-X-VERSION",
    "#EXT-X-TARGETDURATION",
    "#EXT-X-MEDIA-SEQUENCE",
    "#EXT-X-PLAYLIST-TYPE",
    "#EXT-X-INDEPENDENT-SEGMENTS",
    "#EXT-X-ALLOW-CACHE",
)


@dataclass
class MediaSegment:
    """One EXTINF/URI pair."""
    duration: float
    uri: str
    extinf: str  # tag line as written, kept so segments are re-emitted verbatim

    @classmethod
    def create(cls, duration: float, uri: str) -> "MediaSegment":
        return cls(duration=duration, uri=uri, extinf=f"#EXTINF:{duration:.6f},")


@dataclass
class MediaPlaylist:
    """A VOD media playlist."""
    target_duration: int
    segments: List[MediaSegment] = field(default_factory=list)
    version: int = 3
    media_sequence: int = 0
    ended: bool = True

    @property
    def uris(self) -> List[str]:
        return [segment.uri for segment in self.segments]

    def render(self) -> str:
        """Serialize the playlist to m3u8 text."""
        lines = [
            "#EXTM3U",
            f"#EXT-X-VERSION:{self.version}",
            f"#EXT-X-TARGETDURATION:{self.target_duration}",
            f"#EXT-X-MEDIA-SEQUENCE:{self.media_sequence}",
        ]
        for segment in self.segments:
            lines.append(segment.extinf)
            lines.append(segment.uri)
        if self.ended:
            lines.append("#EXT-X-ENDLIST")
        return "\n".join(lines) + "\n"


def _tag_value(line: str) -> str:
    return line.split(":", 1)[1].strip() if ":" in line else ""


def _parse_int(line: str, line_no: int) -> int:
    try:
        return int(_tag_value(line))
    except ValueError:
        raise PlaylistSynthesisError(f"Line {line_no}: invalid integer in {line!r}")


def _parse_extinf(line: str, line_no: int) -> float:
    duration = _tag_value(line).split(",", 1)[0]
    try:
        return float(duration)
    except ValueError:
        raise PlaylistSynthesisError(f"Line {line_no}: invalid segment duration in {line!r}")


def parse_playlist(text: str) -> MediaPlaylist:
    """
    Parse m3u8 text into a MediaPlaylist.

    Only the constructs produced by plain VOD segmenting are accepted:
    header tags, EXTINF/URI pairs and EXT-X-ENDLIST. Any other tag (for
    example EXT-X-DISCONTINUITY or EXT-X-BYTERANGE) is rejected rather than
    silently dropped, since re-serializing without it would change what
    the playlist means.

    Args:
        text: Playlist contents

    Returns:
        Parsed MediaPlaylist

    Raises:
        PlaylistSynthesisError: If the text is not a playlist of that shape
    """
    lines = [(no, line.strip()) for no, line in enumerate(text.splitlines(), 1)]
    lines = [(no, line) for no, line in lines if line]

    if not lines or lines[0][1] != "#EXTM3U":
        raise PlaylistSynthesisError("Playlist does not start with #EXTM3U")

    version = 3
    target_duration: Optional[int] = None
    media_sequence = 0
    segments: List[MediaSegment] = []
    ended = False
    pending: Optional[tuple] = None  # (extinf line, duration) awaiting its URI

    for line_no, line in lines[1:]:
        if ended:
            raise PlaylistSynthesisError(f"Line {line_no}: content after #EXT-X-ENDLIST: {line!r}")

        if line.startswith("#EXTINF:"):
            if pending is not None:
                raise PlaylistSynthesisError(f"Line {line_no}: #EXTINF without a segment URI")
            pending = (line, _parse_extinf(line, line_no))
        elif line == "#EXT-X-ENDLIST":
            if pending is not None:
                raise PlaylistSynthesisError(f"Line {line_no}: #EXTINF without a segment URI")
            ended = True
        elif line.startswith("#EXT"):
            tag = line.split(":", 1)[0]
            if segments or pending is not None or tag not in HEADER_TAGS:
                raise PlaylistSynthesisError(f"Line {line_no}: unsupported tag {line!r}")
            if tag == "#EXT-X-VERSION":
                version = _parse_int(line, line_no)
            elif tag == "#EXT-X-TARGETDURATION":
                target_duration = _parse_int(line, line_no)
            elif tag == "#EXT-X-MEDIA-SEQUENCE":
                media_sequence = _parse_int(line, line_no)
        elif line.startswith("#"):
            # Plain comment
            continue
        else:
            if pending is None:
                raise PlaylistSynthesisError(f"Line {line_no}: segment URI without #EXTINF: {line!r}")
            extinf, duration = pending
            segments.append(MediaSegment(duration=duration, uri=line, extinf=extinf))
            pending = None

    if pending is not None:
        raise PlaylistSynthesisError("Playlist ends with #EXTINF but no segment URI")
    if target_duration is None:
        raise PlaylistSynthesisError("Playlist has no #EXT-X-TARGETDURATION")

    return MediaPlaylist(
        target_duration=target_duration,
        segments=segments,
        version=version,
        media_sequence=media_sequence,
        ended=ended
    )


def read_playlist(path: Path) -> MediaPlaylist:
    """
    Read and parse a playlist file.

    Raises:
        PlaylistSynthesisError: If the file cannot be read or parsed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PlaylistSynthesisError(f"Cannot read playlist {path}: {e}") from e

    try:
        return parse_playlist(text)
    except PlaylistSynthesisError as e:
        raise PlaylistSynthesisError(f"{path.name}: {e}") from e


def publish_playlist(playlist: MediaPlaylist, path: Path) -> Path:
    """
    Write a playlist to its final path atomically.

    The text goes to a hidden temporary file in the same directory first and
    is renamed into place, so the final path never holds a partial playlist.

    Args:
        playlist: Playlist to write
        path: Final playlist path

    Returns:
        The final playlist path

    Raises:
        PlaylistSynthesisError: If the file cannot be written
    """
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(playlist.render())
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            tmp_path.unlink()
        except OSError:
            pass
        raise PlaylistSynthesisError(f"Cannot write playlist {path}: {e}") from e

    logging.debug(f"Published playlist {path} ({len(playlist.segments)} segments)")
    return path
