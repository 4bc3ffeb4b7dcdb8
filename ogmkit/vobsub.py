"""Reader for VobSub index (.idx) and data (.sub) file pairs."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, TextIO

INDEX_MAGIC = "# VobSub index file, v7"

_TIMESTAMP_LINE = re.compile(
    r"timestamp: ([0-9]{2}):([0-9]{2}):([0-9]{2}):([0-9]{3}), "
    r"filepos: ([0-9a-fA-F]{9,})",
    re.ASCII,
)
_SIZE = re.compile(r"\s*([+-]?[0-9]+)x\s*([+-]?[0-9]+)", re.ASCII)
_INT = re.compile(r"\s*([+-]?[0-9]+)", re.ASCII)


class VobSubError(ValueError):
    """The VobSub files cannot be used."""


@dataclass
class VobSubEntry:
    """One subtitle picture: its start and duration in ms and its raw data."""

    start: int
    duration: int
    data: bytes
    last: bool = False


@dataclass
class VobSubTrack:
    """A subtitle track described by the index file."""

    width: int
    height: int
    palette: str
    langidx: int
    language: str
    index: int
    entries: list[VobSubEntry] = field(default_factory=list)


def probe(stream: TextIO) -> bool:
    """Check whether a text stream is a VobSub index; rewinds the stream."""
    try:
        stream.seek(0)
        return stream.readline().startswith(INDEX_MAGIC)
    finally:
        stream.seek(0)


def sub_path_for(index_path: str | os.PathLike[str]) -> Path:
    """Return the data file name belonging to an index file."""
    name = os.fspath(index_path)
    if len(name) > 4 and name[-4] == ".":
        name = name[:-4]
    return Path(name + ".sub")


def parse_timestamp_line(line: str) -> tuple[int, int]:
    """Parse 'timestamp: HH:MM:SS:mmm, filepos: XXXXXXXXX' into (ms, offset)."""
    match = _TIMESTAMP_LINE.match(line)
    if match is None:
        raise ValueError(f"not a VobSub timestamp line: {line!r}")
    hours, minutes, seconds, millis = (int(g) for g in match.groups()[:4])
    start = hours * 3_600_000 + minutes * 60_000 + seconds * 1000 + millis
    return start, int(match.group(5), 16)


def _leading_int(text: str) -> int | None:
    match = _INT.match(text)
    return None if match is None else int(match.group(1))


def _warn_line(what: str, lineno: int) -> None:
    print(
        f"vobsub_reader: Warning: Incorrect \"{what}\" entry on line {lineno}. "
        "Ignored.",
        file=sys.stdout,
    )


def _warn(message: str) -> None:
    print(f"Warning: vobsub_reader: {message}", file=sys.stderr)


def _read_entry(
    sub: BinaryIO, start: int, duration: int, begin: int, end: int, last: bool
) -> VobSubEntry | None:
    if begin == end:
        _warn(
            "This entry and the last entry start at the same position in "
            "the file. Ignored."
        )
        return None
    size = end - begin
    data = b""
    if size > 0:
        sub.seek(begin)
        data = sub.read(size)
    if size < 0 or len(data) != size:
        _warn("Could not read entry from the sub file. Ignored.")
        return None
    return VobSubEntry(start, duration, data, last)


class VobSubReader:
    """Reads subtitle pictures from a VobSub index and its data file."""

    def __init__(self, path: str | os.PathLike[str], *, verbose: bool = False) -> None:
        self.path = Path(path)
        self.sub_path = sub_path_for(path)
        self.verbose = verbose
        with self._open_index() as stream:
            if not probe(stream):
                raise VobSubError(
                    "vobsub_reader: Source is not a valid VobSub index file."
                )
        try:
            with open(self.sub_path, "rb"):
                pass
        except OSError as exc:
            raise VobSubError("vobsub_reader: Could not open the sub file.") from exc
        if verbose:
            print(
                f"Using VobSub subtitle reader for {self.path}/{self.sub_path}.\n"
                "+-> Using VobSub subtitle output module for subtitles.",
                file=sys.stderr,
            )

    def _open_index(self) -> TextIO:
        return open(
            self.path, encoding="utf-8", errors="surrogateescape", newline=""
        )

    def read(self) -> list[VobSubTrack]:
        """Parse the index and cut the data file into entries."""
        tracks: list[VobSubTrack] = []
        track: VobSubTrack | None = None
        width = height = -1
        palette: str | None = None
        langidx = -1
        language: str | None = None
        index = -1
        last_start = last_filepos = -1

        with self._open_index() as idx, open(self.sub_path, "rb") as sub:
            for lineno, line in enumerate(idx, start=1):
                if not line or line[0] in "#\n\r":
                    continue
                if line.startswith("size: "):
                    match = _SIZE.match(line, 6)
                    if match is None:
                        width = height = -1
                        _warn_line("size:", lineno)
                    else:
                        width, height = int(match.group(1)), int(match.group(2))
                elif line.startswith("palette: "):
                    if len(line) < 10:
                        _warn_line("palette:", lineno)
                    else:
                        palette = line[9:].rstrip("\r\n")
                elif line.startswith("langidx: "):
                    value = _leading_int(line[9:])
                    if value is None or value < 0:
                        _warn_line("langidx:", lineno)
                        langidx = -1
                    else:
                        langidx = value
                elif line.startswith("id:"):
                    rest = line[3:].lstrip()
                    if "," not in rest:
                        _warn_line("id:", lineno)
                        continue
                    language, rest = rest.split(",", 1)
                    rest = rest.lstrip()
                    if not rest.startswith("index:"):
                        _warn_line("id:", lineno)
                        continue
                    value = _leading_int(rest[6:])
                    if value is None or value < 0:
                        _warn_line("id:", lineno)
                        index = -1
                        continue
                    index = value
                else:
                    try:
                        start, filepos = parse_timestamp_line(line)
                    except ValueError:
                        print(
                            "vobsub_reader: Warning: Unknown line format on line "
                            f"{lineno}. Ignored.",
                            file=sys.stdout,
                        )
                        continue
                    if track is None:
                        track = self._new_track(
                            width, height, palette, langidx, language, index
                        )
                        tracks.append(track)
                        width = height = -1
                        palette = None
                        langidx = -1
                        language = None
                        index = -1
                        continue
                    if last_start != -1 and last_filepos != -1:
                        entry = _read_entry(
                            sub, last_start, start - last_start,
                            last_filepos, filepos, False,
                        )
                        if entry is not None:
                            track.entries.append(entry)
                    last_start, last_filepos = start, filepos
                    if self.verbose:
                        print(
                            f"line {lineno}, start {start}, filepos {filepos}",
                            file=sys.stdout,
                        )

            if last_start != -1 and last_filepos != -1 and track is not None:
                end = sub.seek(0, os.SEEK_END)
                entry = _read_entry(
                    sub, last_start, start - last_start, last_filepos, end, True
                )
                if entry is not None:
                    track.entries.append(entry)
        return tracks

    @staticmethod
    def _new_track(
        width: int,
        height: int,
        palette: str | None,
        langidx: int,
        language: str | None,
        index: int,
    ) -> VobSubTrack:
        damaged = "entry found. File seems to be damaged."
        if width == -1 or height == -1:
            raise VobSubError(f'vobsub_reader: No "size:" {damaged}')
        if palette is None:
            raise VobSubError(f'vobsub_reader: No "palette:" {damaged}')
        if langidx == -1:
            raise VobSubError(f'vobsub_reader: No "langidx:" {damaged}')
        if language is None or index == -1:
            raise VobSubError(f'vobsub_reader: No "id:" {damaged}')
        return VobSubTrack(width, height, palette, langidx, language, index)