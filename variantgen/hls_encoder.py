"""Lossless HLS segmenting at a fixed segment duration."""

import logging
import math
from pathlib import Path
from typing import Optional

from variantgen.data_models import PLAYLIST_NAME, VideoAsset
from variantgen.errors import PlaylistSynthesisError
from variantgen.ffmpeg_runner import FFmpegRunner, SegmentRequest
from variantgen.playlist import MediaPlaylist, publish_playlist, read_playlist
from variantgen.validator import Validator


STAGING_PLAYLIST_NAME = "staging.m3u8"


def remove_staging_file(path: Path) -> None:
    """Delete an intermediate playlist left by ffmpeg."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning(f"Could not remove staging file {path}: {e}")


def publish_variant(
    playlist: MediaPlaylist,
    output_dir: Path,
    segment_duration: float,
    validator: Validator
) -> Path:
    """
    Normalize, validate and publish a variant playlist.

    The header is rewritten to the fixed VOD form (version 3, target
    duration = ceil(segment_duration), media sequence 0, end list).

    Args:
        playlist: Playlist holding the variant's segments
        output_dir: Variant output directory
        segment_duration: Nominal segment duration in seconds
        validator: Validator run before the playlist becomes visible

    Returns:
        Path to the published playlist

    Raises:
        PlaylistSynthesisError: If validation or writing fails
    """
    target_duration = math.ceil(segment_duration)
    overlong = [s.uri for s in playlist.segments if round(s.duration) > target_duration]
    if overlong:
        logging.warning(
            f"{output_dir.name}: {len(overlong)} segment(s) exceed target duration "
            f"{target_duration}s (keyframe cuts), first: {overlong[0]}"
        )

    final = MediaPlaylist(
        target_duration=target_duration,
        segments=playlist.segments,
        version=3,
        media_sequence=0,
        ended=True
    )

    validation = validator.validate_playlist(final, output_dir, final.target_duration)
    if not validation.valid:
        raise PlaylistSynthesisError(validation.error_message)

    return publish_playlist(final, output_dir / PLAYLIST_NAME)


class NormalSegmenter:
    """Cuts a source into HLS segments with codecs copied."""

    def __init__(self, runner: FFmpegRunner, validator: Optional[Validator] = None):
        """
        Initialize NormalSegmenter.

        Args:
            runner: FFmpeg runner used for the segmenting pass
            validator: Playlist validator (default: Validator())
        """
        self.runner = runner
        self.validator = validator or Validator()

    def build(self, asset: VideoAsset, segment_duration: float, output_dir: Path) -> Path:
        """
        Build a normal variant.

        Args:
            asset: Source video
            segment_duration: Segment duration in seconds
            output_dir: Variant output directory (created if missing)

        Returns:
            Path to the published playlist

        Raises:
            EncodeError: If ffmpeg fails
            PlaylistSynthesisError: If the playlist cannot be published
        """
        logging.info(f"Creating m3u8 with {segment_duration}s segments for {asset.name}...")
        output_dir.mkdir(parents=True, exist_ok=True)

        staging = self.runner.segment(SegmentRequest(
            input_path=asset.path,
            segment_duration=segment_duration,
            output_dir=output_dir,
            playlist_name=STAGING_PLAYLIST_NAME,
            start_number=0
        ))

        playlist = read_playlist(staging)
        if not playlist.ended:
            raise PlaylistSynthesisError(f"FFmpeg playlist is incomplete: {staging}")

        playlist_path = publish_variant(playlist, output_dir, segment_duration, self.validator)
        remove_staging_file(staging)

        logging.info(f"Finished m3u8 with {segment_duration}s segments: {len(playlist.segments)} segments")
        return playlist_path
