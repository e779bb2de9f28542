"""Validates variant playlists before they are published."""

import logging
from pathlib import Path
from typing import List

from variantgen.data_models import ValidationResult
from variantgen.playlist import MediaPlaylist


def segment_name(index: int) -> str:
    """File name of the segment with the given ordinal."""
    return f"segment{index:03d}.ts"


class Validator:
    """Checks that a playlist is complete and everything it lists is on disk."""

    def _check_playlist(self, playlist: MediaPlaylist, target_duration: int) -> List[str]:
        """
        Verify header values and segment ordering.

        Args:
            playlist: Parsed playlist
            target_duration: Expected EXT-X-TARGETDURATION value

        Returns:
            List of problems found (empty if the playlist is valid)
        """
        problems = []

        if playlist.target_duration != target_duration:
            problems.append(f"target duration {playlist.target_duration} != {target_duration}")
        if playlist.media_sequence != 0:
            problems.append(f"media sequence {playlist.media_sequence} != 0")
        if not playlist.ended:
            problems.append("missing #EXT-X-ENDLIST")
        if not playlist.segments:
            problems.append("no segments listed")

        expected = [segment_name(i) for i in range(len(playlist.segments))]
        if playlist.uris != expected:
            problems.append(f"segments are not numbered contiguously from {segment_name(0)}")

        return problems

    def _check_segments_exist(self, output_dir: Path, uris: List[str]) -> List[str]:
        """
        Verify that all segment files are present and not empty.

        Args:
            output_dir: Directory holding the segments
            uris: Segment URIs listed by the playlist

        Returns:
            Names of missing or empty segment files
        """
        missing = []
        for uri in uris:
            segment_file = output_dir / uri
            if not segment_file.is_file() or segment_file.stat().st_size == 0:
                missing.append(uri)
        return missing

    def validate_playlist(
        self,
        playlist: MediaPlaylist,
        output_dir: Path,
        target_duration: int
    ) -> ValidationResult:
        """
        Run all checks on a playlist that is about to be published.

        Args:
            playlist: Parsed playlist
            output_dir: Directory the playlist and its segments live in
            target_duration: Expected EXT-X-TARGETDURATION value

        Returns:
            ValidationResult with detailed validation status
        """
        problems = self._check_playlist(playlist, target_duration)
        if problems:
            error_msg = f"Invalid playlist in {output_dir.name}: {'; '.join(problems)}"
            logging.error(error_msg)
            return ValidationResult(
                valid=False,
                playlist_valid=False,
                segments_valid=False,
                error_message=error_msg
            )

        missing = self._check_segments_exist(output_dir, playlist.uris)
        if missing:
            error_msg = f"Missing or empty segment files: {', '.join(missing)}"
            logging.error(error_msg)
            return ValidationResult(
                valid=False,
                playlist_valid=True,
                segments_valid=False,
                error_message=error_msg
            )

        logging.debug(f"Validated {output_dir.name} playlist with {len(playlist.segments)} segments")
        return ValidationResult(
            valid=True,
            playlist_valid=True,
            segments_valid=True,
            error_message=None
        )
