import io

import pytest

from ogmkit.ogg import (
    LogicalStream,
    OggError,
    OggPage,
    OggWarning,
    probe,
    read_pages,
)


def lacing(size):
    return [255] * (size // 255) + [size % 255]


def make_page(packets, serial=7, seq=0, granule=0, bos=False, eos=False):
    segments = []
    for packet in packets:
        segments += lacing(len(packet))
    return OggPage(
        serialno=serial,
        sequence=seq,
        granulepos=granule,
        segments=segments,
        body=b"".join(packets),
        bos=bos,
        eos=eos,
    )


def test_page_round_trip():
    page = make_page([b"hello", b"x" * 300], serial=12345, seq=3, granule=99)
    assert OggPage.from_bytes(page.to_bytes()) == page


def test_page_wire_layout():
    page = make_page([b"abc"], bos=True)
    data = page.to_bytes()
    assert data[:4] == b"OggS"
    assert data[5] == 0x02
    assert data.endswith(b"abc")
    eos = make_page([b"abc"], eos=True).to_bytes()
    assert eos[5] == 0x04


def test_negative_granule_round_trip():
    page = make_page([b"a"], granule=-1)
    assert OggPage.from_bytes(page.to_bytes()).granulepos == -1


def test_corrupted_page_rejected():
    data = bytearray(make_page([b"payload"]).to_bytes())
    data[-1] ^= 0xFF
    with pytest.raises(OggError):
        OggPage.from_bytes(bytes(data))


def test_truncated_page_rejected():
    data = make_page([b"payload"]).to_bytes()
    with pytest.raises(OggError):
        OggPage.from_bytes(data[:-1])


def test_to_bytes_rejects_inconsistent_segments():
    page = OggPage(serialno=1, sequence=0, granulepos=0, segments=[5], body=b"abc")
    with pytest.raises(ValueError):
        page.to_bytes()


def test_read_pages_in_order():
    pages = [make_page([b"one"], seq=0, bos=True), make_page([b"two"], seq=1)]
    stream = io.BytesIO(b"".join(p.to_bytes() for p in pages))
    assert list(read_pages(stream)) == pages


def test_read_pages_larger_than_read_size():
    page = make_page([bytes(range(256)) * 20])
    assert list(read_pages(io.BytesIO(page.to_bytes()))) == [page]


def test_read_pages_skips_garbage():
    page = make_page([b"data"])
    stream = io.BytesIO(b"junk" + page.to_bytes())
    with pytest.warns(OggWarning):
        result = list(read_pages(stream))
    assert result == [page]


def test_read_pages_skips_corrupted_page():
    bad = bytearray(make_page([b"bad"], seq=0).to_bytes())
    bad[-1] ^= 0x55
    good = make_page([b"good"], seq=1)
    with pytest.warns(OggWarning):
        result = list(read_pages(io.BytesIO(bytes(bad) + good.to_bytes())))
    assert result == [good]


def test_probe():
    stream = io.BytesIO(make_page([b"x"]).to_bytes())
    assert probe(stream) is True
    assert stream.tell() == 0
    assert probe(io.BytesIO(b"RIFF0000WAVE")) is False
    assert probe(io.BytesIO(b"Og")) is False


def test_packets_granule_and_flags():
    stream = LogicalStream(7)
    stream.page_in(make_page([b"a", b"bb"], granule=42, bos=True, eos=True))
    packets = list(stream.packets())
    assert [p.data for p in packets] == [b"a", b"bb"]
    assert [p.granulepos for p in packets] == [-1, 42]
    assert [p.bos for p in packets] == [True, False]
    assert [p.eos for p in packets] == [False, True]
    assert [p.packetno for p in packets] == [0, 1]
    assert list(stream.packets()) == []


def test_packet_spanning_pages():
    payload = bytes(range(256)) + b"tail" * 11
    head = OggPage(7, 0, -1, [255], payload[:255])
    tail = OggPage(7, 1, 77, [len(payload) - 255], payload[255:], continued=True)
    stream = LogicalStream(7)
    stream.page_in(head)
    assert list(stream.packets()) == []
    stream.page_in(tail)
    packets = list(stream.packets())
    assert [p.data for p in packets] == [payload]
    assert packets[0].granulepos == tail.granulepos


def test_hole_drops_partial_packet():
    stream = LogicalStream(7)
    stream.page_in(OggPage(7, 0, -1, [255], bytes(255)))
    stream.page_in(
        OggPage(7, 2, 5, [45, 2], bytes(45) + b"xy", continued=True)
    )
    assert [p.data for p in stream.packets()] == [b"xy"]


def test_continued_first_page_skips_lost_packet():
    stream = LogicalStream(7)
    stream.page_in(OggPage(7, 0, 9, [3, 2], b"abcde", continued=True))
    assert [p.data for p in stream.packets()] == [b"de"]


def test_wrong_serial_rejected():
    stream = LogicalStream(7)
    with pytest.raises(OggError):
        stream.page_in(make_page([b"a"], serial=8))


def test_pages_through_stream_round_trip():
    packets = [b"first", b"s" * 600, b"third"]
    pages = [
        make_page(packets[:1], seq=0, bos=True),
        make_page(packets[1:], seq=1, granule=10, eos=True),
    ]
    stream = LogicalStream(7)
    for page in read_pages(io.BytesIO(b"".join(p.to_bytes() for p in pages))):
        stream.page_in(page)
    assert [p.data for p in stream.packets()] == packets