"""Vorbis comment headers: parsing, editing and serialisation."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .streams import PACKET_TYPE_COMMENT

DEFAULT_VENDOR = "ogmkit"

_U32 = struct.Struct("<I")
_MAGIC = b"vorbis"
_PREFIX_LEN = 1 + len(_MAGIC)


class CommentError(ValueError):
    """A comment packet could not be decoded."""


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


@dataclass
class VorbisComment:
    """A vendor string and a list of NAME=value comments."""

    vendor: str = DEFAULT_VENDOR
    comments: list[str] = field(default_factory=list)

    @classmethod
    def unpack(cls, data: bytes) -> VorbisComment:
        """Decode a comment packet, including its seven-byte prefix."""
        data = bytes(data)
        if len(data) < _PREFIX_LEN:
            raise CommentError("comment packet is too short")
        pos = _PREFIX_LEN

        def take(count: int) -> bytes:
            nonlocal pos
            if pos + count > len(data):
                raise CommentError("comment packet is truncated")
            chunk = data[pos : pos + count]
            pos += count
            return chunk

        def take_length() -> int:
            value = _U32.unpack(take(_U32.size))[0]
            if value >= 0x80000000:
                raise CommentError("comment packet holds a negative length")
            return value

        vendor = _decode(take(take_length()))
        count = take_length()
        comments = [_decode(take(take_length())) for _ in range(count)]
        return cls(vendor=vendor, comments=comments)

    @classmethod
    def generate(
        cls, comments: list[str] | None = None, vendor: str = DEFAULT_VENDOR
    ) -> VorbisComment:
        """Build a comment block from user supplied comments."""
        return cls(vendor=vendor, comments=list(comments or []))

    def remove_number(self, num: int) -> None:
        """Remove the comment at position num; positions past the end are ignored."""
        if num < 0:
            raise IndexError("comment number must not be negative")
        if num < len(self.comments):
            del self.comments[num]

    def remove_tag(self, tag: str) -> None:
        """Remove every comment named tag."""
        prefix = f"{tag}="
        self.comments[:] = [c for c in self.comments if not c.startswith(prefix)]

    def copy(self) -> VorbisComment:
        """Return an independent copy."""
        return VorbisComment(vendor=self.vendor, comments=list(self.comments))

    def to_packet(self) -> bytes:
        """Serialise as a comment packet ending in the framing bit."""
        parts = [bytes([PACKET_TYPE_COMMENT]), _MAGIC]
        vendor = _encode(self.vendor)
        parts += [_U32.pack(len(vendor)), vendor, _U32.pack(len(self.comments))]
        for comment in self.comments:
            raw = _encode(comment)
            parts += [_U32.pack(len(raw)), raw]
        parts.append(b"\x01")
        return b"".join(parts)


def cat_comments(
    dst: VorbisComment | None, src: VorbisComment | None
) -> VorbisComment | None:
    """Append the comments of src to dst and return the result."""
    if dst is None:
        return None if src is None else src.copy()
    if src is not None:
        dst.comments.extend(src.comments)
    return dst