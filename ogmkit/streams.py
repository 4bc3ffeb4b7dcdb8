"""OggDS stream header structures and data packet flags."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum

PACKET_TYPE_HEADER = 0x01
PACKET_TYPE_COMMENT = 0x03
PACKET_TYPE_BITS = 0x07
PACKET_LEN_BITS01 = 0xC0
PACKET_LEN_BITS2 = 0x02
PACKET_IS_SYNCPOINT = 0x08

# Units of "reference time" per second, as used by the time_unit field.
REFERENCE_TIME = 10_000_000

# Wire layout: stream type, subtype, size, time unit, samples per unit,
# default length, buffer size, bits per sample, padding, type specific part.
_LAYOUT = struct.Struct("<8s4sIQQIIHH8s")
_VIDEO = struct.Struct("<II")
_AUDIO = struct.Struct("<HHI")

# The structure is aligned to eight bytes, so it carries trailing padding.
HEADER_SIZE = (_LAYOUT.size + 7) // 8 * 8


class PacketKind(Enum):
    """What a packet of an OggDS stream carries."""

    HEADER = "header"
    COMMENT = "comment"
    DATA = "data"


@dataclass(frozen=True)
class VideoHeader:
    """Video specific part of a stream header."""

    width: int
    height: int


@dataclass(frozen=True)
class AudioHeader:
    """Audio specific part of a stream header."""

    channels: int
    blockalign: int
    avgbytespersec: int


def _field_text(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("latin-1")


def _field_bytes(text: str, width: int, name: str) -> bytes:
    raw = text.encode("latin-1")
    if len(raw) > width:
        raise ValueError(f"{name} {text!r} is longer than {width} bytes")
    return raw


@dataclass
class StreamHeader:
    """The header that opens every OggDS stream."""

    stream_type: str
    subtype: str
    size: int = HEADER_SIZE
    time_unit: int = 0
    samples_per_unit: int = 0
    default_len: int = 0
    buffer_size: int = 0
    bits_per_sample: int = 0
    padding: int = 0
    video: VideoHeader | None = None
    audio: AudioHeader | None = None

    @classmethod
    def from_bytes(cls, data: bytes) -> StreamHeader:
        """Parse a header; data starts after the packet type byte."""
        data = bytes(data)
        if len(data) < HEADER_SIZE:
            raise ValueError(
                f"stream header needs {HEADER_SIZE} bytes, got {len(data)}"
            )
        (
            stream_type,
            subtype,
            size,
            time_unit,
            samples_per_unit,
            default_len,
            buffer_size,
            bits_per_sample,
            padding,
            specific,
        ) = _LAYOUT.unpack_from(data)
        header = cls(
            stream_type=_field_text(stream_type),
            subtype=_field_text(subtype),
            size=size,
            time_unit=time_unit,
            samples_per_unit=samples_per_unit,
            default_len=default_len,
            buffer_size=buffer_size,
            bits_per_sample=bits_per_sample,
            padding=padding,
        )
        if header.stream_type.startswith("video"):
            header.video = VideoHeader(*_VIDEO.unpack(specific))
        elif header.stream_type.startswith("audio"):
            header.audio = AudioHeader(*_AUDIO.unpack(specific))
        return header

    def to_bytes(self) -> bytes:
        """Serialise the header, without the packet type byte."""
        if self.video is not None:
            specific = _VIDEO.pack(self.video.width, self.video.height)
        elif self.audio is not None:
            specific = _AUDIO.pack(
                self.audio.channels, self.audio.blockalign, self.audio.avgbytespersec
            )
        else:
            specific = bytes(_VIDEO.size)
        packed = _LAYOUT.pack(
            _field_bytes(self.stream_type, 8, "stream type"),
            _field_bytes(self.subtype, 4, "subtype"),
            self.size,
            self.time_unit,
            self.samples_per_unit,
            self.default_len,
            self.buffer_size,
            self.bits_per_sample,
            self.padding,
            specific,
        )
        return packed.ljust(HEADER_SIZE, b"\0")

    @property
    def frames_per_second(self) -> float:
        """Frame rate implied by the time unit."""
        if self.time_unit == 0:
            raise ValueError("time unit is zero")
        return REFERENCE_TIME / self.time_unit


def _first_byte(packet: bytes) -> int:
    if not packet:
        raise ValueError("empty packet")
    return packet[0]


def packet_kind(packet: bytes) -> PacketKind:
    """Classify a packet by its first byte."""
    low = _first_byte(packet) & 0x03
    if low == PACKET_TYPE_HEADER:
        return PacketKind.HEADER
    if low == PACKET_TYPE_COMMENT:
        return PacketKind.COMMENT
    return PacketKind.DATA


def data_length_field(packet: bytes) -> tuple[int, int | None]:
    """Return the size of a data packet's length field and its value.

    The value is None when the packet has no length field or is too short
    to hold the one it announces.
    """
    first = _first_byte(packet)
    hdrlen = (first & PACKET_LEN_BITS01) >> 6
    hdrlen |= (first & PACKET_LEN_BITS2) << 1
    if hdrlen == 0 or len(packet) < hdrlen + 1:
        return hdrlen, None
    return hdrlen, int.from_bytes(packet[1 : hdrlen + 1], "little")


def is_syncpoint(packet: bytes) -> bool:
    """Whether a data packet is flagged as a keyframe."""
    return bool(_first_byte(packet) & PACKET_IS_SYNCPOINT)