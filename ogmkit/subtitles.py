"""Queueing and consistency checking of timed text subtitles."""

from __future__ import annotations

import sys
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass

SubtitleSink = Callable[[int, int, str, bool], None]


@dataclass
class Subtitle:
    """One subtitle entry; times are in milliseconds."""

    start: int
    end: int
    text: str


def format_timestamp(ms: int) -> str:
    """Format milliseconds as HH:MM:SS,mmm."""
    sign = "-" if ms < 0 else ""
    ms = abs(ms)
    hours, rest = divmod(ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def _short(text: str) -> str:
    return text[:20].replace("\n", " ")


class SubtitleQueue:
    """A first-in first-out queue of subtitle entries."""

    def __init__(self) -> None:
        self._entries: deque[Subtitle] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Subtitle]:
        return iter(self._entries)

    def add(self, start: int, end: int, text: str) -> None:
        """Append an entry."""
        self._entries.append(Subtitle(start, end, text))

    def check(self, verbose: bool = False) -> bool:
        """Fix overlapping entries; return True if any entry remains broken."""
        entries = list(self._entries)
        for current, following in zip(entries, entries[1:]):
            if current.end > following.start:
                if verbose:
                    print(
                        "subtitles: Warning: current entry ends after the next "
                        f"one starts. This end: {format_timestamp(current.end)}"
                        f"  next start: {format_timestamp(following.start)}"
                        f'  ("{_short(current.text)}"...)',
                        file=sys.stdout,
                    )
                current.end = following.start - 1

        broken = False
        for entry in entries:
            if entry.start > entry.end:
                broken = True
                if verbose:
                    print(
                        "subtitles: Warning: after fixing the time the current "
                        "entry begins after it ends. This start: "
                        f"{format_timestamp(entry.start)}  this end: "
                        f"{format_timestamp(entry.end)}"
                        f'  ("{_short(entry.text)}"...)',
                        file=sys.stdout,
                    )
        return broken

    def get_next(self) -> Subtitle | None:
        """Remove and return the oldest entry, or None if the queue is empty."""
        return self._entries.popleft() if self._entries else None

    def process(self, sink: SubtitleSink) -> None:
        """Hand every entry to sink(start, end, text, last), emptying the queue."""
        while (entry := self.get_next()) is not None:
            sink(entry.start, entry.end, entry.text, not self._entries)