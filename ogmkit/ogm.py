"""Demultiplexer for Ogg files holding Vorbis and OggDS (OGM) streams."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Collection, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Union

from .comments import CommentError, VorbisComment
from .ogg import LogicalStream, Packet, probe, read_pages
from .streams import (
    HEADER_SIZE,
    PACKET_TYPE_BITS,
    PACKET_TYPE_HEADER,
    REFERENCE_TIME,
    PacketKind,
    StreamHeader,
    data_length_field,
    is_syncpoint,
    packet_kind,
)

DISPLAY_PRIORITY_LOW = 0
DISPLAY_PRIORITY_MEDIUM = 1
DISPLAY_PRIORITY_HIGH = 2

_HEX_PREFIX = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]+)", re.ASCII)


class OgmError(ValueError):
    """The file cannot be demultiplexed."""


class StreamKind(Enum):
    """The kinds of stream the demultiplexer understands."""

    VORBIS = "vorbis"
    VIDEO = "video"
    PCM = "pcm"
    MP3 = "mp3"
    AC3 = "ac3"
    TEXT = "text"


_AUDIO_CODECS = {
    0x0001: StreamKind.PCM,
    0x0055: StreamKind.MP3,
    0x2000: StreamKind.AC3,
}

_KIND_NAMES = {
    StreamKind.VORBIS: "Vorbis audio",
    StreamKind.VIDEO: "video",
    StreamKind.PCM: "PCM",
    StreamKind.MP3: "MP3",
    StreamKind.AC3: "AC3",
    StreamKind.TEXT: "text subtitle",
}


@dataclass
class OgmStream:
    """A logical stream selected for extraction.

    ``number`` counts streams of the same family (audio, video or text),
    ``index`` counts all recognised streams; both start at 1.
    """

    serialno: int
    kind: StreamKind
    number: int
    index: int
    header: StreamHeader | None = None
    codec: str | None = None
    eos: bool = False
    units_processed: int = 0

    @property
    def fps(self) -> float | None:
        """Frame rate of a video stream, or None when it is not known."""
        if self.kind is not StreamKind.VIDEO or self.header is None:
            return None
        if self.header.time_unit == 0:
            return None
        return REFERENCE_TIME / self.header.time_unit


@dataclass
class DataPacket:
    """A payload packet of a selected stream.

    For video, ``duration`` is the number of frames (1 when the packet
    carries no length field); for text, the display length in ms.
    """

    stream: OgmStream
    data: bytes
    granulepos: int = -1
    duration: int | None = None
    keyframe: bool = False
    eos: bool = False


@dataclass
class CommentPacket:
    """Comments found inside an OggDS stream."""

    stream: OgmStream
    comment: VorbisComment


OgmPacket = Union[DataPacket, CommentPacket]


def demuxing_requested(selection: Collection[int] | None, number: int) -> bool:
    """Whether stream number is wanted; no selection means every stream."""
    return selection is None or number in selection


def _hex_value(text: str) -> int:
    match = _HEX_PREFIX.match(text)
    if match is None:
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


class OgmDemuxer:
    """Splits an Ogg file into packets of the streams that were selected."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        audio: Collection[int] | None = None,
        video: Collection[int] | None = None,
        text: Collection[int] | None = None,
        comments: list[str] | None = None,
        fourcc: str | None = None,
        verbose: bool = False,
    ) -> None:
        self.path = path
        self.audio = audio
        self.video = video
        self.text = text
        self.comments = list(comments) if comments else []
        self.fourcc = fourcc
        self.verbose = verbose
        self.streams: list[OgmStream] = []
        self._counts = {"audio": 0, "video": 0, "text": 0}
        self._total = 0
        with self._open() as stream:
            if not probe(stream):
                raise OgmError("ogm_reader: Source is not a valid OGG media file.")
        if verbose:
            print(f"Using OGG/OGM demultiplexer for {os.fspath(path)}.", file=sys.stderr)
        self._scan_headers()

    def _open(self) -> BinaryIO:
        try:
            return open(self.path, "rb")
        except OSError as exc:
            raise OgmError("ogm_reader: Could not open source file.") from exc

    def _scan_headers(self) -> None:
        with self._open() as source:
            for page in read_pages(source):
                if not page.bos:
                    return
                logical = LogicalStream(page.serialno)
                logical.page_in(page)
                first = next(logical.packets(), None)
                if first is None:
                    continue
                found = self._identify(page.serialno, first.data)
                if found is not None:
                    self.streams.append(found)
                    if self.verbose:
                        print(
                            f"+-> Using {_KIND_NAMES[found.kind]} output module "
                            f"for stream {found.index}.",
                            file=sys.stdout,
                        )
        raise OgmError("ogm_reader: The file holds no data pages.")

    def _next(self, family: str) -> tuple[int, int]:
        self._counts[family] += 1
        self._total += 1
        return self._counts[family], self._total

    def _identify(self, serialno: int, data: bytes) -> OgmStream | None:
        if len(data) >= 7 and data[1:7] == b"vorbis":
            number, index = self._next("audio")
            if not demuxing_requested(self.audio, number):
                return None
            return OgmStream(serialno, StreamKind.VORBIS, number, index)

        if (data[0] & PACKET_TYPE_BITS) != PACKET_TYPE_HEADER or len(
            data
        ) < HEADER_SIZE + 1:
            return None
        header = StreamHeader.from_bytes(data[1:])

        if header.stream_type.startswith("video"):
            number, index = self._next("video")
            if not demuxing_requested(self.video, number):
                return None
            codec = self.fourcc if self.fourcc is not None else header.subtype
            return OgmStream(
                serialno, StreamKind.VIDEO, number, index, header=header, codec=codec
            )

        if header.stream_type.startswith("audio"):
            number, index = self._next("audio")
            if not demuxing_requested(self.audio, number):
                return None
            kind = _AUDIO_CODECS.get(_hex_value(header.subtype[:4]))
            if kind is None:
                print(
                    f"FATAL: ogm_reader: Audio stream {index} has a unknown type. "
                    "Will try to continue and ignore this stream.",
                    file=sys.stderr,
                )
                return None
            return OgmStream(
                serialno, kind, number, index, header=header, codec=header.subtype
            )

        if header.stream_type.startswith("text"):
            number, index = self._next("text")
            if not demuxing_requested(self.text, number):
                return None
            return OgmStream(serialno, StreamKind.TEXT, number, index, header=header)

        return None

    def packets(self) -> Iterator[OgmPacket]:
        """Yield the packets of every selected stream in file order.

        Streams that end without an end-of-stream packet get an empty
        packet flagged as the end of the stream once the file is exhausted.
        """
        by_serial = {s.serialno: s for s in self.streams}
        logical: dict[int, LogicalStream] = {}
        for stream in self.streams:
            stream.eos = False
            stream.units_processed = 0

        with self._open() as source:
            for page in read_pages(source):
                stream = by_serial.get(page.serialno)
                if stream is None or stream.eos:
                    continue
                assembler = logical.setdefault(
                    page.serialno, LogicalStream(page.serialno)
                )
                assembler.page_in(page)
                for packet in assembler.packets():
                    yield from self._convert(stream, packet, page.granulepos)
                    if packet.eos:
                        stream.eos = True
                        break

        for stream in self.streams:
            if not stream.eos:
                stream.eos = True
                yield DataPacket(stream, b"", eos=True, duration=0)

    def _convert(
        self, stream: OgmStream, packet: Packet, page_granulepos: int
    ) -> Iterator[OgmPacket]:
        data = packet.data
        if stream.kind is StreamKind.VORBIS:
            yield DataPacket(stream, data, granulepos=page_granulepos, eos=packet.eos)
            return
        if not data:
            return

        kind = packet_kind(data)
        if kind is PacketKind.HEADER:
            return
        if kind is PacketKind.COMMENT:
            if not self.comments:
                try:
                    comment = VorbisComment.unpack(data)
                except CommentError:
                    return
                yield CommentPacket(stream, comment)
            return

        hdrlen, length = data_length_field(data)
        payload = data[hdrlen + 1 :]

        if stream.kind is StreamKind.VIDEO:
            frames = length if hdrlen > 0 and length is not None else 1
            stream.units_processed += frames
            yield DataPacket(
                stream,
                payload,
                granulepos=packet.granulepos,
                duration=frames,
                keyframe=is_syncpoint(data),
                eos=packet.eos,
            )
        elif stream.kind is StreamKind.TEXT:
            text = payload.split(b"\0", 1)[0]
            if not text or text[:1] in (b"\n", b"\r") or text == b" ":
                return
            stream.units_processed += 1
            yield DataPacket(
                stream,
                text,
                granulepos=packet.granulepos,
                duration=length if length is not None else 0,
                eos=packet.eos,
            )
        else:
            stream.units_processed += len(data) - 1
            yield DataPacket(
                stream,
                payload,
                granulepos=packet.granulepos,
                duration=length,
                eos=packet.eos,
            )

    def display_priority(self) -> int:
        """Medium when a video stream is selected, low otherwise."""
        if any(s.kind is StreamKind.VIDEO for s in self.streams):
            return DISPLAY_PRIORITY_MEDIUM
        return DISPLAY_PRIORITY_LOW