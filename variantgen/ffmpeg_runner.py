"""FFmpeg invocations used to build variants."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from variantgen.errors import EncodeError


SEGMENT_PATTERN = "segment%03d.ts"


@dataclass(frozen=True)
class DegradeProfile:
    """Encoding settings for a deliberately tiny lead-in clip."""
    width: int = 160
    height: int = 90
    frame_rate: int = 10
    video_codec: str = "libx264"
    video_bitrate: str = "50k"
    maxrate: str = "50k"
    bufsize: str = "100k"
    preset: str = "ultrafast"
    crf: int = 51  # 0-51, 51 is worst
    audio_codec: str = "aac"
    audio_bitrate: str = "32k"
    audio_sample_rate: int = 22050
    audio_channels: int = 1


LEAD_IN_PROFILE = DegradeProfile()


@dataclass(frozen=True)
class SegmentRequest:
    """Cut a source into HLS segments without re-encoding."""
    input_path: Path
    segment_duration: float
    output_dir: Path
    playlist_name: str
    segment_pattern: str = SEGMENT_PATTERN
    start_number: int = 0
    seek_offset: Optional[float] = None


@dataclass(frozen=True)
class ClipRequest:
    """Re-encode the first seconds of a source into a single MPEG-TS file."""
    input_path: Path
    clip_duration: float
    output_path: Path
    profile: DegradeProfile = LEAD_IN_PROFILE


def format_seconds(value: float) -> str:
    """Format a duration for the ffmpeg command line ("0.5", "4")."""
    return f"{value:g}"


class FFmpegRunner:
    """Builds and runs FFmpeg commands, one blocking process at a time."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout: int = 3600):
        """
        Initialize FFmpegRunner.

        Args:
            ffmpeg_path: Path to the ffmpeg executable
            timeout: Maximum run time of a single ffmpeg process in seconds
        """
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        logging.info(f"FFmpegRunner initialized with ffmpeg_path={ffmpeg_path}, timeout={timeout}s")

    def build_segment_command(self, request: SegmentRequest) -> List[str]:
        """
        Build the command for lossless HLS segmenting.

        Paths of the playlist and segments are relative: the command runs
        with the output directory as working directory, so the playlist
        references segments by bare file name.
        """
        command = [
            self.ffmpeg_path,
            "-hide_banner",
            "-y",
            "-i", str(request.input_path.absolute()),
        ]
        if request.seek_offset:
            # Output-side seek, applied after the input is opened
            command.extend(["-ss", format_seconds(request.seek_offset)])
        command.extend([
            # Copy codecs without re-encoding
            "-c", "copy",
            "-start_number", str(request.start_number),
            "-hls_time", format_seconds(request.segment_duration),
            # Keep all segments in the playlist (VOD, no sliding window)
            "-hls_list_size", "0",
            "-hls_segment_filename", request.segment_pattern,
            "-f", "hls",
            request.playlist_name,
        ])
        return command

    def build_clip_command(self, request: ClipRequest) -> List[str]:
        """Build the command for a degraded single-file clip."""
        profile = request.profile
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-y",
            "-i", str(request.input_path.absolute()),
            "-t", format_seconds(request.clip_duration),
            # Video
            "-c:v", profile.video_codec,
            "-preset", profile.preset,
            "-crf", str(profile.crf),
            "-vf", f"scale={profile.width}:{profile.height}",
            "-r", str(profile.frame_rate),
            "-b:v", profile.video_bitrate,
            "-maxrate", profile.maxrate,
            "-bufsize", profile.bufsize,
            # Audio
            "-c:a", profile.audio_codec,
            "-b:a", profile.audio_bitrate,
            "-ar", str(profile.audio_sample_rate),
            "-ac", str(profile.audio_channels),
            "-f", "mpegts",
            request.output_path.name,
        ]

    def segment(self, request: SegmentRequest, step: str = "segment") -> Path:
        """
        Segment a source losslessly into HLS.

        Args:
            request: Segmenting parameters
            step: Build step name reported in errors

        Returns:
            Path to the playlist written by ffmpeg

        Raises:
            EncodeError: If ffmpeg fails, times out or is missing
        """
        command = self.build_segment_command(request)
        self._run(command, request.output_dir, step)

        playlist = request.output_dir / request.playlist_name
        if not playlist.is_file():
            raise EncodeError(f"FFmpeg finished but playlist was not created: {playlist}", step)
        return playlist

    def encode_clip(self, request: ClipRequest, step: str = "lead_in") -> Path:
        """
        Encode a fixed-length degraded clip.

        Args:
            request: Clip parameters
            step: Build step name reported in errors

        Returns:
            Path to the encoded clip

        Raises:
            EncodeError: If ffmpeg fails, times out or is missing
        """
        command = self.build_clip_command(request)
        self._run(command, request.output_path.parent, step)

        if not request.output_path.is_file():
            raise EncodeError(f"FFmpeg finished but clip was not created: {request.output_path}", step)
        return request.output_path

    def _run(self, command: List[str], cwd: Path, step: str) -> subprocess.CompletedProcess:
        logging.debug(f"FFmpeg {step} command: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                # ffmpeg echoes file names and tags as raw bytes
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                cwd=str(cwd.absolute())
            )
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
            raise EncodeError(f"FFmpeg timed out after {self.timeout}s", step, stderr) from e
        except FileNotFoundError as e:
            raise EncodeError(f"FFmpeg executable not found: {self.ffmpeg_path}", step) from e
        except OSError as e:
            raise EncodeError(f"Failed to start FFmpeg: {e}", step) from e

        if result.stderr:
            logging.debug(f"FFmpeg {step} stderr (last 500 chars): {result.stderr[-500:]}")

        if result.returncode != 0:
            raise EncodeError(
                f"FFmpeg exited with code {result.returncode}",
                step,
                result.stderr
            )
        return result
