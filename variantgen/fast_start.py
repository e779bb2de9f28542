"""Fast-start variants: a degraded first segment followed by codec-copy segments."""

import logging
import math
from pathlib import Path
from typing import Optional

from variantgen.data_models import VideoAsset
from variantgen.errors import PlaylistSynthesisError
from variantgen.ffmpeg_runner import (
    LEAD_IN_PROFILE,
    ClipRequest,
    DegradeProfile,
    FFmpegRunner,
    SegmentRequest,
)
from variantgen.hls_encoder import publish_variant, remove_staging_file
from variantgen.playlist import MediaPlaylist, MediaSegment, read_playlist
from variantgen.validator import Validator, segment_name


REMAINDER_PLAYLIST_NAME = "remainder.m3u8"


def splice_lead_in(remainder: MediaPlaylist, segment_duration: float) -> MediaPlaylist:
    """
    Prepend the lead-in segment to the segments of a remainder playlist.

    Args:
        remainder: Playlist produced by the remainder pass (segments 1..N)
        segment_duration: Nominal segment duration in seconds

    Returns:
        Playlist listing segment000.ts followed by the remainder segments

    Raises:
        PlaylistSynthesisError: If the remainder is incomplete or does not
            start at segment001.ts
    """
    if not remainder.ended:
        raise PlaylistSynthesisError("Remainder playlist has no #EXT-X-ENDLIST")

    expected = [segment_name(i) for i in range(1, len(remainder.segments) + 1)]
    if remainder.uris != expected:
        raise PlaylistSynthesisError(
            f"Remainder segments must run contiguously from {segment_name(1)}, got {remainder.uris[:3]}..."
        )

    lead_in = MediaSegment.create(segment_duration, segment_name(0))
    return MediaPlaylist(
        target_duration=math.ceil(segment_duration),
        segments=[lead_in] + remainder.segments
    )


class FastStartSynthesizer:
    """Builds variants whose first segment is tiny so playback starts sooner."""

    def __init__(
        self,
        runner: FFmpegRunner,
        validator: Optional[Validator] = None,
        profile: DegradeProfile = LEAD_IN_PROFILE
    ):
        self.runner = runner
        self.validator = validator or Validator()
        self.profile = profile

    def build(self, asset: VideoAsset, segment_duration: float, output_dir: Path) -> Path:
        """
        Build a fast-start variant.

        Steps:
            1. Encode the first segment_duration seconds at minimal quality
               into segment000.ts
            2. Segment the rest of the source with codecs copied, numbering
               from 1
            3. Splice both into one playlist and publish it

        Args:
            asset: Source video
            segment_duration: Segment duration in seconds
            output_dir: Variant output directory (created if missing)

        Returns:
            Path to the published playlist

        Raises:
            EncodeError: If either ffmpeg pass fails
            PlaylistSynthesisError: If the playlist cannot be synthesized
        """
        logging.info(
            f"Creating m3u8 with FAST START - {segment_duration}s segments for {asset.name}..."
        )
        output_dir.mkdir(parents=True, exist_ok=True)

        logging.info("Creating low quality first segment...")
        lead_in = self.runner.encode_clip(ClipRequest(
            input_path=asset.path,
            clip_duration=segment_duration,
            output_path=output_dir / segment_name(0),
            profile=self.profile
        ), step="lead_in")
        logging.info(f"Low quality first segment created ({lead_in.stat().st_size} bytes)")

        logging.info("Creating normal quality segments (starting from second segment)...")
        remainder_path = self.runner.segment(SegmentRequest(
            input_path=asset.path,
            segment_duration=segment_duration,
            output_dir=output_dir,
            playlist_name=REMAINDER_PLAYLIST_NAME,
            start_number=1,
            seek_offset=segment_duration
        ), step="remainder")

        remainder = read_playlist(remainder_path)
        playlist = splice_lead_in(remainder, segment_duration)
        playlist_path = publish_variant(playlist, output_dir, segment_duration, self.validator)
        remove_staging_file(remainder_path)

        logging.info(
            f"Finished m3u8 with FAST START ({segment_duration}s segments): "
            f"{len(playlist.segments)} segments"
        )
        return playlist_path
