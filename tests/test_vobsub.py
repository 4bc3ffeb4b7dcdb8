import io
from pathlib import Path

import pytest

from ogmkit.vobsub import (
    VobSubError,
    VobSubReader,
    parse_timestamp_line,
    probe,
    sub_path_for,
)

HEADER = (
    "# VobSub index file, v7 (do not modify this line!)\n"
    "size: 720x576\n"
    "palette: 000000, 828282, 828282\n"
    "langidx: 0\n"
    "id: en, index: 0\n"
)
LINE_A = "timestamp: 00:00:01:000, filepos: 000000000\n"
LINE_B = "timestamp: 00:00:02:000, filepos: 000000000\n"
LINE_C = "timestamp: 00:00:03:440, filepos: 000000004\n"
SUB_DATA = b"abcdefghij"


def _write(tmp_path, index_text, sub_data=SUB_DATA):
    idx = tmp_path / "movie.idx"
    idx.write_text(index_text)
    if sub_data is not None:
        (tmp_path / "movie.sub").write_bytes(sub_data)
    return idx


def test_parse_timestamp_line_source_example():
    assert parse_timestamp_line("timestamp: 00:00:03:440, filepos: 000000000") == (
        3440,
        0,
    )


def test_parse_timestamp_line_hex_offset():
    assert parse_timestamp_line(LINE_A.replace("000000000", "00000a000"))[1] == 0xA000


@pytest.mark.parametrize(
    "line",
    [
        "timestamp: 00:00:03.440, filepos: 000000000",
        "timestamp: 00:00:03:440, filepos: 00000000",
        "timestamp: 00:00:03:440, filepos: 00000000g",
        "stamp: 00:00:03:440, filepos: 000000000",
    ],
)
def test_parse_timestamp_line_rejects(line):
    with pytest.raises(ValueError):
        parse_timestamp_line(line)


@pytest.mark.parametrize(
    "index, expected",
    [("movie.idx", Path("movie.sub")), ("movie", Path("movie.sub")), ("a.b", Path("a.b.sub"))],
)
def test_sub_path_for(index, expected):
    assert sub_path_for(index) == expected


def test_probe():
    stream = io.StringIO(HEADER)
    stream.readline()
    assert probe(stream) is True
    assert stream.tell() == 0
    assert probe(io.StringIO("# VobSub index file, v6\n")) is False


def test_read_cuts_sub_file(tmp_path):
    idx = _write(tmp_path, HEADER + LINE_A + LINE_B + LINE_C)
    tracks = VobSubReader(idx).read()
    assert len(tracks) == 1
    track = tracks[0]
    assert (track.width, track.height) == (720, 576)
    assert track.palette == "000000, 828282, 828282"
    assert (track.language, track.index, track.langidx) == ("en", 0, 0)
    assert [e.data for e in track.entries] == [SUB_DATA[:4], SUB_DATA[4:]]
    assert [e.last for e in track.entries] == [False, True]
    b_start = parse_timestamp_line(LINE_B)[0]
    c_start = parse_timestamp_line(LINE_C)[0]
    assert track.entries[0].start == b_start
    assert track.entries[0].duration == c_start - b_start
    assert track.entries[1].start == c_start
    assert track.entries[1].duration == 0


def test_same_position_entries_are_skipped(tmp_path):
    idx = _write(tmp_path, HEADER + LINE_A + LINE_B + LINE_B + LINE_C)
    entries = VobSubReader(idx).read()[0].entries
    assert b"".join(e.data for e in entries) == SUB_DATA


def test_missing_size_is_an_error(tmp_path):
    text = HEADER.replace("size: 720x576\n", "size: wide\n") + LINE_A
    with pytest.raises(VobSubError, match="size"):
        VobSubReader(_write(tmp_path, text)).read()


def test_missing_id_is_an_error(tmp_path):
    text = HEADER.replace("id: en, index: 0\n", "id: en\n") + LINE_A
    with pytest.raises(VobSubError, match="id"):
        VobSubReader(_write(tmp_path, text)).read()


def test_missing_sub_file(tmp_path):
    with pytest.raises(VobSubError, match="sub file"):
        VobSubReader(_write(tmp_path, HEADER, sub_data=None))


def test_not_an_index(tmp_path):
    with pytest.raises(VobSubError):
        VobSubReader(_write(tmp_path, "size: 720x576\n"))


def test_header_only_gives_no_tracks(tmp_path):
    assert VobSubReader(_write(tmp_path, HEADER)).read() == []