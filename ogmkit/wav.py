"""Reader for uncompressed PCM WAVE files."""

from __future__ import annotations

import os
import struct
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

# RIFF chunk, "fmt " chunk with its common fields, then the "data" chunk.
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")
HEADER_SIZE = _HEADER.size


class WavError(ValueError):
    """The file is not a usable WAVE file."""


@dataclass(frozen=True)
class WaveHeader:
    """The canonical header at the start of a WAVE file."""

    riff_len: int
    fmt_len: int
    format_tag: int
    channels: int
    samples_per_sec: int
    avg_bytes_per_sec: int
    block_align: int
    bits_per_sample: int
    data_len: int

    @classmethod
    def from_bytes(cls, data: bytes) -> WaveHeader:
        """Parse the header from the first bytes of a file."""
        data = bytes(data)
        if len(data) < HEADER_SIZE:
            raise WavError(f"WAVE header needs {HEADER_SIZE} bytes, got {len(data)}")
        (
            riff_id,
            riff_len,
            wave_id,
            _fmt_id,
            fmt_len,
            format_tag,
            channels,
            samples_per_sec,
            avg_bytes_per_sec,
            block_align,
            bits_per_sample,
            data_id,
            data_len,
        ) = _HEADER.unpack_from(data)
        if riff_id != b"RIFF" or wave_id != b"WAVE" or data_id != b"data":
            raise WavError("wav_reader: Source is not a valid WAVE file.")
        return cls(
            riff_len=riff_len,
            fmt_len=fmt_len,
            format_tag=format_tag,
            channels=channels,
            samples_per_sec=samples_per_sec,
            avg_bytes_per_sec=avg_bytes_per_sec,
            block_align=block_align,
            bits_per_sample=bits_per_sample,
            data_len=data_len,
        )

    @property
    def bytes_per_second(self) -> int:
        """Bytes of sample data for one second of audio."""
        return self.channels * self.bits_per_sample * self.samples_per_sec // 8

    @property
    def data_size(self) -> int | None:
        """Sample data size implied by the RIFF length, or None if it is unusable."""
        size = self.riff_len - HEADER_SIZE + 8
        return size if size >= 0 else None


def probe(stream: BinaryIO) -> bool:
    """Check whether a binary stream holds a WAVE header; rewinds the stream."""
    try:
        size = stream.seek(0, os.SEEK_END)
        if size < HEADER_SIZE:
            return False
        stream.seek(0)
        raw = stream.read(HEADER_SIZE)
        if len(raw) != HEADER_SIZE:
            return False
        return raw[0:4] == b"RIFF" and raw[8:12] == b"WAVE" and raw[36:40] == b"data"
    finally:
        stream.seek(0)


class WavReader:
    """Reads the PCM data of a WAVE file one second at a time."""

    def __init__(self, path: str | os.PathLike[str], *, verbose: bool = False) -> None:
        self.path = path
        try:
            with open(path, "rb") as stream:
                if not probe(stream):
                    raise WavError("wav_reader: Source is not a valid WAVE file.")
                self.header = WaveHeader.from_bytes(stream.read(HEADER_SIZE))
        except OSError as exc:
            raise WavError("wav_reader: Could not open source file.") from exc
        self.bytes_processed = 0
        if verbose:
            print(
                f"Using WAV demultiplexer for {os.fspath(path)}.\n"
                "+-> Using PCM output module for audio stream.",
                file=sys.stderr,
            )

    @property
    def bytes_per_second(self) -> int:
        return self.header.bytes_per_second

    def chunks(self) -> Iterator[tuple[bytes, bool]]:
        """Yield (data, last) pairs of at most one second of samples each.

        If the file ends before the header says it should, a single zero
        byte is yielded as the final chunk.
        """
        self.bytes_processed = 0
        size = self.bytes_per_second
        limit = self.header.data_size
        with open(self.path, "rb") as stream:
            stream.seek(HEADER_SIZE)
            while True:
                data = stream.read(size)
                if not data:
                    yield b"\0", True
                    return
                last = limit is not None and self.bytes_processed + len(data) >= limit
                self.bytes_processed += len(data)
                yield data, last
                if last:
                    return

    def progress(self) -> tuple[int, int, int]:
        """Return seconds done, seconds in total and the percentage done."""
        size = self.bytes_per_second
        limit = self.header.data_size
        if size == 0 or limit is None:
            raise ValueError("the length of the audio data is unknown")
        total = limit // size
        if total == 0:
            raise ValueError("the audio data is shorter than one second")
        done = self.bytes_processed // size
        return done, total, self.bytes_processed * 100 // size // total