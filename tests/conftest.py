import math
import subprocess
from pathlib import Path

import pytest

from variantgen.ffmpeg_runner import FFmpegRunner


LEAD_IN_BYTES = 1_000
SEGMENT_BYTES = 50_000


def _option(command, flag, default=None):
    if flag not in command:
        return default
    return command[command.index(flag) + 1]


class FakeFFmpeg:
    """Stands in for subprocess.run, writing what ffmpeg would write."""

    def __init__(self):
        self.calls = []
        self.durations = {}  # input file name -> seconds
        self.default_duration = 20.0
        self.fail_kinds = set()  # "segment", "lead_in", "remainder"
        self.fail_input = None  # only fail for this input file name
        self.extra_body_tag = None  # tag injected after the first segment

    def kind(self, command):
        if _option(command, "-f") == "mpegts":
            return "lead_in"
        if _option(command, "-start_number") == "1":
            return "remainder"
        return "segment"

    def count(self, kind):
        return sum(1 for call in self.calls if self.kind(call) == kind)

    def __call__(self, command, stdout=None, stderr=None, text=None, timeout=None, cwd=None, encoding=None, errors=None):
        self.calls.append(command)
        cwd = Path(cwd)
        input_path = Path(_option(command, "-i"))
        kind = self.kind(command)

        if kind in self.fail_kinds and self.fail_input in (None, input_path.name):
            return subprocess.CompletedProcess(command, 1, "", f"{input_path}: simulated {kind} failure")

        duration = self.durations.get(input_path.name, self.default_duration)
        if kind == "lead_in":
            (cwd / command[-1]).write_bytes(b"L" * LEAD_IN_BYTES)
        else:
            self._write_hls(command, cwd, duration)
        return subprocess.CompletedProcess(command, 0, "", "")

    def _write_hls(self, command, cwd, duration):
        hls_time = float(_option(command, "-hls_time"))
        start = int(_option(command, "-start_number"))
        seek = float(_option(command, "-ss", "0"))
        pattern = _option(command, "-hls_segment_filename")

        remaining = max(duration - seek, 0.0)
        count = math.ceil(remaining / hls_time) if remaining > 0 else 0
        lengths = [min(hls_time, remaining - i * hls_time) for i in range(count)]

        lines = [
            "#EXTM3U",
            "#EXT-X-VERSION:3",
            f"#EXT-X-TARGETDURATION:{math.ceil(max(lengths, default=hls_time))}",
            f"#EXT-X-MEDIA-SEQUENCE:{start}",
        ]
        for offset, length in enumerate(lengths):
            name = pattern % (start + offset)
            (cwd / name).write_bytes(b"F" * SEGMENT_BYTES)
            lines.append(f"#EXTINF:{length:.6f},")
            lines.append(name)
            if offset == 0 and self.extra_body_tag:
                lines.append(self.extra_body_tag)
        lines.append("#EXT-X-ENDLIST")
        (cwd / command[-1]).write_text("\n".join(lines) + "\n")


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    fake = FakeFFmpeg()
    monkeypatch.setattr("variantgen.ffmpeg_runner.subprocess.run", fake)
    return fake


@pytest.fixture
def runner():
    return FFmpegRunner("ffmpeg", timeout=60)


@pytest.fixture
def uploads(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def clip(uploads):
    path = uploads / "clip.mp4"
    path.write_bytes(b"source video")
    return path
