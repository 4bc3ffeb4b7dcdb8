"""Readers for OGG/OGM media, WAVE audio, SRT and VobSub subtitles, and Vorbis comments."""

__version__ = "0.7.2"

__all__ = ["comments", "ogg", "ogm", "srt", "streams", "subtitles", "vobsub", "wav"]