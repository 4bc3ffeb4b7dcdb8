"""Ogg page framing, page scanning and logical stream packet assembly."""

from __future__ import annotations

import os
import struct
import warnings
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import BinaryIO

CAPTURE = b"OggS"
FLAG_CONTINUED = 0x01
FLAG_BOS = 0x02
FLAG_EOS = 0x04
MAX_SEGMENTS = 255
READ_SIZE = 4096

# Capture pattern, version, flags, granule position, serial number,
# page sequence number, checksum, number of segments.
_HEADER = struct.Struct("<4sBBqIIIB")
_CRC_OFFSET = 22


class OggError(ValueError):
    """Data could not be decoded as an Ogg page or stream."""


class OggWarning(UserWarning):
    """Bytes were skipped while looking for Ogg pages."""


def _crc_table() -> list[int]:
    table = []
    for value in range(256):
        reg = value << 24
        for _ in range(8):
            reg = ((reg << 1) ^ 0x04C11DB7) if reg & 0x80000000 else reg << 1
            reg &= 0xFFFFFFFF
        table.append(reg)
    return table


_CRC_TABLE = _crc_table()


def _crc(data: bytes | bytearray) -> int:
    crc = 0
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[((crc >> 24) ^ byte) & 0xFF]
    return crc


@dataclass
class OggPage:
    """One page of an Ogg physical bitstream."""

    serialno: int
    sequence: int
    granulepos: int
    segments: list[int]
    body: bytes
    bos: bool = False
    eos: bool = False
    continued: bool = False
    version: int = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> OggPage:
        """Parse the page at the start of data, verifying its checksum."""
        parsed = _parse(bytes(data))
        if parsed is None:
            raise OggError("Ogg page is truncated")
        return parsed[0]

    def to_bytes(self) -> bytes:
        """Serialise the page with a freshly computed checksum."""
        if len(self.segments) > MAX_SEGMENTS:
            raise ValueError(f"a page holds at most {MAX_SEGMENTS} segments")
        if any(not 0 <= seg <= 255 for seg in self.segments):
            raise ValueError("segment sizes must lie between 0 and 255")
        if sum(self.segments) != len(self.body):
            raise ValueError("segment table does not match the body length")
        flags = (
            (FLAG_CONTINUED if self.continued else 0)
            | (FLAG_BOS if self.bos else 0)
            | (FLAG_EOS if self.eos else 0)
        )
        raw = bytearray(
            _HEADER.pack(
                CAPTURE,
                self.version,
                flags,
                self.granulepos,
                self.serialno,
                self.sequence,
                0,
                len(self.segments),
            )
        )
        raw += bytes(self.segments)
        raw += self.body
        struct.pack_into("<I", raw, _CRC_OFFSET, _crc(raw))
        return bytes(raw)


def _parse(buf: bytes | bytearray) -> tuple[OggPage, int] | None:
    """Parse a page at the start of buf; None means more data is needed."""
    if len(buf) < _HEADER.size:
        return None
    capture, version, flags, granule, serial, seq, crc, nseg = _HEADER.unpack_from(buf)
    if capture != CAPTURE:
        raise OggError("missing Ogg capture pattern")
    body_start = _HEADER.size + nseg
    if len(buf) < body_start:
        return None
    segments = list(buf[_HEADER.size : body_start])
    body_end = body_start + sum(segments)
    if len(buf) < body_end:
        return None
    raw = bytearray(buf[:body_end])
    raw[_CRC_OFFSET : _CRC_OFFSET + 4] = bytes(4)
    if _crc(raw) != crc:
        raise OggError("Ogg page checksum mismatch")
    page = OggPage(
        serialno=serial,
        sequence=seq,
        granulepos=granule,
        segments=segments,
        body=bytes(buf[body_start:body_end]),
        bos=bool(flags & FLAG_BOS),
        eos=bool(flags & FLAG_EOS),
        continued=bool(flags & FLAG_CONTINUED),
        version=version,
    )
    return page, body_end


def _warn_skip(count: int) -> None:
    warnings.warn(
        f"skipped {count} bytes outside of valid Ogg pages; "
        "the file may be damaged",
        OggWarning,
        stacklevel=3,
    )


def read_pages(stream: BinaryIO) -> Iterator[OggPage]:
    """Yield the valid pages of a binary stream, skipping damaged data."""
    buf = bytearray()
    while True:
        start = buf.find(CAPTURE)
        if start < 0:
            keep = len(CAPTURE) - 1
            if len(buf) > keep:
                _warn_skip(len(buf) - keep)
                del buf[: len(buf) - keep]
        else:
            if start > 0:
                _warn_skip(start)
                del buf[:start]
            try:
                parsed = _parse(buf)
            except OggError:
                _warn_skip(1)
                del buf[:1]
                continue
            if parsed is not None:
                page, size = parsed
                del buf[:size]
                yield page
                continue
        chunk = stream.read(READ_SIZE)
        if not chunk:
            return
        buf += chunk


def probe(stream: BinaryIO) -> bool:
    """Check whether a binary stream starts with an Ogg page; rewinds it."""
    try:
        size = stream.seek(0, os.SEEK_END)
        if size < len(CAPTURE):
            return False
        stream.seek(0)
        return stream.read(len(CAPTURE)) == CAPTURE
    finally:
        stream.seek(0)


@dataclass
class Packet:
    """A packet reassembled from the pages of one logical stream."""

    data: bytes
    granulepos: int = -1
    bos: bool = False
    eos: bool = False
    packetno: int = 0


@dataclass
class LogicalStream:
    """Collects the pages of one serial number and yields whole packets."""

    serialno: int
    _pending: bytearray = field(default_factory=bytearray, init=False, repr=False)
    _in_packet: bool = field(default=False, init=False, repr=False)
    _pending_bos: bool = field(default=False, init=False, repr=False)
    _expected: int | None = field(default=None, init=False, repr=False)
    _packetno: int = field(default=0, init=False, repr=False)
    _ready: deque[Packet] = field(default_factory=deque, init=False, repr=False)

    def _drop_partial(self) -> None:
        self._pending = bytearray()
        self._in_packet = False
        self._pending_bos = False

    def page_in(self, page: OggPage) -> None:
        """Add a page; packets it completes become available from packets()."""
        if page.serialno != self.serialno:
            raise OggError(
                f"page of stream {page.serialno} fed to stream {self.serialno}"
            )
        if self._expected is not None and page.sequence != self._expected:
            self._drop_partial()
        self._expected = (page.sequence + 1) & 0xFFFFFFFF

        segments = page.segments
        first = 0
        pos = 0
        if page.continued and not self._in_packet:
            # The start of this packet was lost; skip what remains of it.
            for seg in segments:
                first += 1
                pos += seg
                if seg < 255:
                    break

        last = len(segments) - 1
        for number, seg in enumerate(segments[first:], start=first):
            if not self._in_packet:
                self._in_packet = True
                self._pending_bos = page.bos and number == 0
            self._pending += page.body[pos : pos + seg]
            pos += seg
            if seg < 255:
                final = number == last
                self._ready.append(
                    Packet(
                        data=bytes(self._pending),
                        granulepos=page.granulepos if final else -1,
                        bos=self._pending_bos,
                        eos=page.eos and final,
                        packetno=self._packetno,
                    )
                )
                self._packetno += 1
                self._drop_partial()

    def packets(self) -> Iterator[Packet]:
        """Yield and remove every complete packet received so far."""
        while self._ready:
            yield self._ready.popleft()