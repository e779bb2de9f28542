import logging

import pytest

from variantgen.data_models import VideoAsset
from variantgen.errors import EncodeError, PlaylistSynthesisError
from variantgen.fast_start import FastStartSynthesizer, splice_lead_in
from variantgen.hls_encoder import NormalSegmenter, publish_variant
from variantgen.playlist import MediaPlaylist, MediaSegment, parse_playlist
from variantgen.validator import Validator


@pytest.fixture
def asset(clip):
    return VideoAsset.from_path(clip)


def test_normal_variant_4s(fake_ffmpeg, runner, asset, uploads):
    output_dir = uploads / "clip_4s"

    playlist_path = NormalSegmenter(runner).build(asset, 4, output_dir)

    assert playlist_path == output_dir / "playlist.m3u8"
    lines = playlist_path.read_text().splitlines()
    assert lines[:4] == [
        "#EXTM3U",
        "#EXT-X-VERSION:3",
        "#EXT-X-TARGETDURATION:4",
        "#EXT-X-MEDIA-SEQUENCE:0",
    ]
    assert lines[4:-1] == [
        line
        for i in range(5)
        for line in ("#EXTINF:4.000000,", f"segment{i:03d}.ts")
    ]
    assert lines[-1] == "#EXT-X-ENDLIST"
    assert not (output_dir / "staging.m3u8").exists()
    assert fake_ffmpeg.count("segment") == 1


def test_normal_variant_sub_second(fake_ffmpeg, runner, asset, uploads):
    playlist_path = NormalSegmenter(runner).build(asset, 0.5, uploads / "clip_500ms")

    playlist = parse_playlist(playlist_path.read_text())
    assert playlist.target_duration == 1
    assert len(playlist.segments) == 40


def test_normal_variant_creates_nested_output_dir(fake_ffmpeg, runner, asset, tmp_path):
    output_dir = tmp_path / "a" / "b" / "clip_8s"
    NormalSegmenter(runner).build(asset, 8, output_dir)
    assert (output_dir / "playlist.m3u8").is_file()


def test_normal_variant_failure_leaves_no_playlist(fake_ffmpeg, runner, asset, uploads):
    fake_ffmpeg.fail_kinds.add("segment")
    output_dir = uploads / "clip_4s"

    with pytest.raises(EncodeError) as excinfo:
        NormalSegmenter(runner).build(asset, 4, output_dir)

    assert excinfo.value.step == "segment"
    assert "simulated segment failure" in excinfo.value.diagnostics
    assert not (output_dir / "playlist.m3u8").exists()


def test_fast_start_variant_1s(fake_ffmpeg, runner, asset, uploads):
    output_dir = uploads / "clip_1s_fast"

    playlist_path = FastStartSynthesizer(runner).build(asset, 1, output_dir)

    lines = playlist_path.read_text().splitlines()
    assert lines[:6] == [
        "#EXTM3U",
        "#EXT-X-VERSION:3",
        "#EXT-X-TARGETDURATION:1",
        "#EXT-X-MEDIA-SEQUENCE:0",
        "#EXTINF:1.000000,",
        "segment000.ts",
    ]
    assert lines[-1] == "#EXT-X-ENDLIST"

    playlist = parse_playlist(playlist_path.read_text())
    assert playlist.uris == [f"segment{i:03d}.ts" for i in range(20)]
    assert (output_dir / "segment000.ts").stat().st_size < (output_dir / "segment001.ts").stat().st_size
    assert not (output_dir / "remainder.m3u8").exists()
    assert fake_ffmpeg.count("lead_in") == 1
    assert fake_ffmpeg.count("remainder") == 1


def test_fast_start_runs_lead_in_before_remainder(fake_ffmpeg, runner, asset, uploads):
    FastStartSynthesizer(runner).build(asset, 4, uploads / "clip_4s_fast")
    assert [fake_ffmpeg.kind(c) for c in fake_ffmpeg.calls] == ["lead_in", "remainder"]


def test_fast_start_short_video_has_only_lead_in(fake_ffmpeg, runner, asset, uploads):
    fake_ffmpeg.durations["clip.mp4"] = 3.0

    playlist_path = FastStartSynthesizer(runner).build(asset, 4, uploads / "clip_4s_fast")

    assert parse_playlist(playlist_path.read_text()).uris == ["segment000.ts"]


def test_lead_in_failure_aborts_variant(fake_ffmpeg, runner, asset, uploads):
    fake_ffmpeg.fail_kinds.add("lead_in")
    output_dir = uploads / "clip_1s_fast"

    with pytest.raises(EncodeError) as excinfo:
        FastStartSynthesizer(runner).build(asset, 1, output_dir)

    assert excinfo.value.step == "lead_in"
    assert not (output_dir / "playlist.m3u8").exists()
    assert fake_ffmpeg.count("remainder") == 0


def test_remainder_failure_leaves_no_playlist(fake_ffmpeg, runner, asset, uploads):
    fake_ffmpeg.fail_kinds.add("remainder")
    output_dir = uploads / "clip_1s_fast"

    with pytest.raises(EncodeError) as excinfo:
        FastStartSynthesizer(runner).build(asset, 1, output_dir)

    assert excinfo.value.step == "remainder"
    assert (output_dir / "segment000.ts").exists()
    assert not (output_dir / "playlist.m3u8").exists()


def test_unexpected_remainder_tag_fails_loudly(fake_ffmpeg, runner, asset, uploads):
    fake_ffmpeg.extra_body_tag = "#EXT-X-DISCONTINUITY"
    output_dir = uploads / "clip_4s_fast"

    with pytest.raises(PlaylistSynthesisError, match="unsupported tag"):
        FastStartSynthesizer(runner).build(asset, 4, output_dir)

    assert not (output_dir / "playlist.m3u8").exists()


def test_missing_remainder_segment_blocks_publish(fake_ffmpeg, runner, asset, uploads, monkeypatch):
    output_dir = uploads / "clip_4s_fast"
    original = fake_ffmpeg._write_hls

    def drop_a_segment(command, cwd, duration):
        original(command, cwd, duration)
        (cwd / "segment002.ts").unlink()

    monkeypatch.setattr(fake_ffmpeg, "_write_hls", drop_a_segment)

    with pytest.raises(PlaylistSynthesisError, match="segment002.ts"):
        FastStartSynthesizer(runner).build(asset, 4, output_dir)
    assert not (output_dir / "playlist.m3u8").exists()


def test_splice_rejects_gaps():
    remainder = MediaPlaylist(
        target_duration=4,
        segments=[MediaSegment.create(4, "segment001.ts"), MediaSegment.create(4, "segment003.ts")]
    )
    with pytest.raises(PlaylistSynthesisError, match="contiguously"):
        splice_lead_in(remainder, 4)


def test_splice_requires_end_list():
    remainder = MediaPlaylist(target_duration=4, segments=[MediaSegment.create(4, "segment001.ts")], ended=False)
    with pytest.raises(PlaylistSynthesisError, match="ENDLIST"):
        splice_lead_in(remainder, 4)


def test_splice_keeps_remainder_lines_verbatim():
    remainder = parse_playlist(
        "#EXTM3U\n#EXT-X-TARGETDURATION:5\n#EXT-X-MEDIA-SEQUENCE:1\n"
        "#EXTINF:4.170000,\nsegment001.ts\n#EXT-X-ENDLIST\n"
    )
    spliced = splice_lead_in(remainder, 4)

    assert spliced.media_sequence == 0
    assert spliced.target_duration == 4
    assert [s.extinf for s in spliced.segments] == ["#EXTINF:4.000000,", "#EXTINF:4.170000,"]


def test_publish_warns_about_segments_longer_than_target(tmp_path, caplog):
    (tmp_path / "segment000.ts").write_bytes(b"ts")
    playlist = MediaPlaylist(target_duration=2, segments=[MediaSegment.create(2.0, "segment000.ts")])

    with caplog.at_level(logging.WARNING):
        publish_variant(playlist, tmp_path, 1, Validator())

    assert "exceed target duration 1s" in caplog.text
    assert parse_playlist((tmp_path / "playlist.m3u8").read_text()).target_duration == 1


def test_publish_is_quiet_when_segments_fit(tmp_path, caplog):
    (tmp_path / "segment000.ts").write_bytes(b"ts")
    playlist = MediaPlaylist(target_duration=4, segments=[MediaSegment.create(4.0, "segment000.ts")])

    with caplog.at_level(logging.WARNING):
        publish_variant(playlist, tmp_path, 4, Validator())

    assert "exceed target duration" not in caplog.text
