"""Reader for SRT text subtitle files."""

from __future__ import annotations

import os
import re
import sys
from typing import TextIO

from .subtitles import SubtitleQueue, SubtitleSink

_STAMP = r"([0-9]{2}):([0-9]{2}):([0-9]{2}),([0-9]{3})"
_TIME_LINE = re.compile(_STAMP + " --> " + _STAMP, re.ASCII)


class SrtError(ValueError):
    """The file is not a usable SRT subtitle file."""


def _is_blank(line: str) -> bool:
    return line[:1] in ("\n", "\r")


def parse_time_line(line: str) -> tuple[int, int]:
    """Parse 'HH:MM:SS,mmm --> HH:MM:SS,mmm' into start and end milliseconds."""
    match = _TIME_LINE.match(line)
    if match is None:
        raise ValueError(f"not an SRT time line: {line!r}")
    h1, m1, s1, ms1, h2, m2, s2, ms2 = (int(part) for part in match.groups())
    start = h1 * 3_600_000 + m1 * 60_000 + s1 * 1000 + ms1
    end = h2 * 3_600_000 + m2 * 60_000 + s2 * 1000 + ms2
    return start, end


def probe(stream: TextIO) -> bool:
    """Check whether a text stream starts like an SRT file.

    The stream is left positioned at its beginning.
    """
    try:
        stream.seek(0)
        first = stream.readline()
        if len(first) < 2 or first[0] != "1" or first[1] not in "\n\r":
            return False
        try:
            parse_time_line(stream.readline())
        except ValueError:
            return False
        return stream.readline() != ""
    finally:
        stream.seek(0)


def read_srt(stream: TextIO) -> SubtitleQueue:
    """Read subtitle entries until the end of the stream or a malformed entry."""
    queue = SubtitleQueue()
    while True:
        if not stream.readline():
            break
        time_line = stream.readline()
        if not time_line:
            break
        try:
            start, end = parse_time_line(time_line)
        except ValueError:
            break
        lines = []
        for line in iter(stream.readline, ""):
            if _is_blank(line):
                break
            lines.append(line)
        if lines:
            queue.add(start, end, "".join(lines))
    return queue


class SrtReader:
    """Reads an SRT file and hands its subtitles to a sink."""

    def __init__(self, path: str | os.PathLike[str], *, verbose: bool = False) -> None:
        self.path = path
        self.verbose = verbose
        with self._open() as stream:
            if not probe(stream):
                raise SrtError("srt_reader: Source is not a valid SRT file.")
        if verbose:
            print(
                f"Using SRT subtitle reader for {os.fspath(path)}.\n"
                "+-> Using text subtitle output module for subtitles.",
                file=sys.stderr,
            )

    def _open(self) -> TextIO:
        return open(
            self.path, encoding="utf-8", errors="surrogateescape", newline=""
        )

    def read(self) -> SubtitleQueue:
        """Parse the file and return its entries with overlaps fixed."""
        with self._open() as stream:
            queue = read_srt(stream)
        if queue.check(self.verbose) and self.verbose:
            print(
                "srt_reader: Warning: The subtitle file seems to be badly "
                "broken. The output file might not be playable correctly.",
                file=sys.stdout,
            )
        return queue

    def process(self, sink: SubtitleSink) -> None:
        """Hand every entry to sink(start, end, text, last)."""
        self.read().process(sink)