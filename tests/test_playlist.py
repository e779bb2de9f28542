import pytest

from variantgen.errors import PlaylistSynthesisError
from variantgen.playlist import (
    MediaPlaylist,
    MediaSegment,
    parse_playlist,
    publish_playlist,
    read_playlist,
)


FFMPEG_OUTPUT = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:5
#EXT-X-MEDIA-SEQUENCE:1
#EXTINF:4.170000,
segment001.ts
#EXTINF:3.830000,
segment002.ts
#EXT-X-ENDLIST
"""


def test_parse_ffmpeg_playlist():
    playlist = parse_playlist(FFMPEG_OUTPUT)

    assert playlist.version == 3
    assert playlist.target_duration == 5
    assert playlist.media_sequence == 1
    assert playlist.ended
    assert playlist.uris == ["segment001.ts", "segment002.ts"]
    assert [s.duration for s in playlist.segments] == [4.17, 3.83]
    assert playlist.segments[0].extinf == "#EXTINF:4.170000,"


def test_render_keeps_segment_lines_verbatim():
    playlist = parse_playlist(FFMPEG_OUTPUT)
    playlist.media_sequence = 0
    playlist.target_duration = 4

    assert playlist.render().splitlines() == [
        "#EXTM3U",
        "#EXT-X-VERSION:3",
        "#EXT-X-TARGETDURATION:4",
        "#EXT-X-MEDIA-SEQUENCE:0",
        "#EXTINF:4.170000,",
        "segment001.ts",
        "#EXTINF:3.830000,",
        "segment002.ts",
        "#EXT-X-ENDLIST",
    ]


def test_segment_create_formats_duration():
    assert MediaSegment.create(0.5, "segment000.ts").extinf == "#EXTINF:0.500000,"


def test_comments_and_blank_lines_ignored():
    text = "#EXTM3U\n\n# generated\n#EXT-X-TARGETDURATION:1\n#EXTINF:1.0,\nsegment000.ts\n"
    playlist = parse_playlist(text)
    assert playlist.uris == ["segment000.ts"]
    assert not playlist.ended


def test_header_tags_accepted():
    text = (
        "#EXTM3U\n#EXT-X-VERSION:3\n#EXT-X-PLAYLIST-TYPE:VOD\n#EXT-X-INDEPENDENT-SEGMENTS\n"
        "#EXT-X-TARGETDURATION:4\n#EXTINF:4.0,\nsegment000.ts\n#EXT-X-ENDLIST\n"
    )
    assert parse_playlist(text).uris == ["segment000.ts"]


@pytest.mark.parametrize("tag", ["#EXT-X-DISCONTINUITY", "#EXT-X-BYTERANGE:100@0", "#EXT-X-KEY:METHOD=NONE"])
def test_unsupported_body_tags_rejected(tag):
    text = FFMPEG_OUTPUT.replace("segment001.ts\n", f"segment001.ts\n{tag}\n")
    with pytest.raises(PlaylistSynthesisError, match="unsupported tag"):
        parse_playlist(text)


def test_unknown_header_tag_rejected():
    text = FFMPEG_OUTPUT.replace("#EXT-X-VERSION:3", '#EXT-X-MAP:URI="init.mp4"')
    with pytest.raises(PlaylistSynthesisError):
        parse_playlist(text)


@pytest.mark.parametrize("text", [
    "",
    "segment000.ts\n",
    "#EXTM3U\n#EXT-X-TARGETDURATION:1\nsegment000.ts\n",
    "#EXTM3U\n#EXT-X-TARGETDURATION:1\n#EXTINF:1.0,\n",
    "#EXTM3U\n#EXT-X-TARGETDURATION:1\n#EXTINF:abc,\nsegment000.ts\n",
    "#EXTM3U\n#EXTINF:1.0,\nsegment000.ts\n",
    "#EXTM3U\n#EXT-X-TARGETDURATION:1\n#EXT-X-ENDLIST\nsegment000.ts\n",
])
def test_malformed_playlists_rejected(text):
    with pytest.raises(PlaylistSynthesisError):
        parse_playlist(text)


def test_publish_replaces_atomically(tmp_path):
    path = tmp_path / "playlist.m3u8"
    path.write_text("old")
    playlist = MediaPlaylist(target_duration=1, segments=[MediaSegment.create(1, "segment000.ts")])

    publish_playlist(playlist, path)

    assert path.read_text() == playlist.render()
    assert [p.name for p in tmp_path.iterdir()] == ["playlist.m3u8"]


def test_publish_into_missing_directory(tmp_path):
    playlist = MediaPlaylist(target_duration=1)
    with pytest.raises(PlaylistSynthesisError, match="Cannot write"):
        publish_playlist(playlist, tmp_path / "missing" / "playlist.m3u8")


def test_read_missing_playlist(tmp_path):
    with pytest.raises(PlaylistSynthesisError, match="Cannot read"):
        read_playlist(tmp_path / "remainder.m3u8")
