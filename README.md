# ogmkit

Pure-Python readers for the inputs of an OGG/OGM multiplexing workflow.
It has no dependencies outside the standard library.

| Module | What it holds |
| --- | --- |
| `ogmkit.streams` | OggDS stream headers (`StreamHeader`, `VideoHeader`, `AudioHeader`) and data packet fields (`packet_kind`, `data_length_field`, `is_syncpoint`) |
| `ogmkit.comments` | Vorbis comment packets (`VorbisComment`, `cat_comments`) |
| `ogmkit.subtitles` | A subtitle queue that repairs overlapping entries (`SubtitleQueue`, `Subtitle`, `format_timestamp`) |
| `ogmkit.srt` | SRT subtitle files (`SrtReader`, `read_srt`, `parse_time_line`, `probe`) |
| `ogmkit.vobsub` | VobSub `.idx`/`.sub` pairs (`VobSubReader`, `VobSubTrack`, `VobSubEntry`, `sub_path_for`, `parse_timestamp_line`, `probe`) |
| `ogmkit.wav` | WAVE files with raw PCM audio (`WavReader`, `WaveHeader`, `probe`) |
| `ogmkit.ogg` | Ogg pages with checksum checking and packet reassembly (`OggPage`, `LogicalStream`, `Packet`, `read_pages`, `probe`) |
| `ogmkit.ogm` | A demultiplexer for Vorbis and OggDS streams (`OgmDemuxer`, `OgmStream`, `DataPacket`, `CommentPacket`, `StreamKind`, `demuxing_requested`) |

## Installation

```
pip install ogmkit
```

## Examples

### Vorbis comments

```python
from ogmkit.comments import VorbisComment, cat_comments

vc = VorbisComment.generate(["TITLE=Example", "LANGUAGE=English"], "ogmkit")
vc.remove_tag("LANGUAGE")
packet = vc.to_packet()          # 0x03, "vorbis", vendor, comments, framing byte
again = VorbisComment.unpack(packet)

merged = cat_comments(again, VorbisComment.generate(["GENRE=Drama"]))
```

`VorbisComment.unpack` raises `CommentError` (a `ValueError`) for a
truncated packet.

### Subtitles

```python
from ogmkit.subtitles import SubtitleQueue, format_timestamp

queue = SubtitleQueue()
queue.add(0, 2000, "Hello\n")
queue.add(1500, 3000, "World\n")
broken = queue.check(verbose=False)  # the first entry now ends at 1499
print(format_timestamp(1500))        # 00:00:01,500

queue.process(lambda start, end, text, last: print(start, end, text, last))
```

`check` returns `True` when an entry still starts after it ends;
`process` hands every entry to the sink and empties the queue.

### SRT files

```python
from ogmkit.srt import SrtReader

reader = SrtReader("movie.srt")      # raises SrtError if the file is not SRT
queue = reader.read()                # a SubtitleQueue with overlaps fixed
```

For an already open text stream, `ogmkit.srt.probe` and
`ogmkit.srt.read_srt` do the same work. Reading stops at the first entry
whose time line is malformed.

### VobSub files

```python
from ogmkit.vobsub import VobSubReader

reader = VobSubReader("movie.idx")   # expects movie.sub next to it
for track in reader.read():
    print(track.language, track.width, track.height)
    for entry in track.entries:
        print(entry.start, entry.duration, len(entry.data), entry.last)
```

`VobSubError` is raised when the index lacks a `size:`, `palette:`,
`langidx:` or `id:` entry before its first timestamp line, or when the
`.sub` file cannot be opened. Other malformed lines are reported and
skipped.

### WAVE files

```python
from ogmkit.wav import WavReader

reader = WavReader("audio.wav")
for data, last in reader.chunks():   # at most one second of samples each
    ...
done, total, percent = reader.progress()
```

If the file ends before its header says it should, the final chunk is a
single zero byte.

### OGG pages and OGM streams

```python
from ogmkit import ogg
from ogmkit.ogm import CommentPacket, DataPacket, OgmDemuxer

with open("movie.ogm", "rb") as stream:
    if ogg.probe(stream):
        for page in ogg.read_pages(stream):   # damaged bytes give an OggWarning
            print(page.serialno, page.granulepos)

demuxer = OgmDemuxer("movie.ogm", audio=[1], video=None, text=[])
for stream in demuxer.streams:
    print(stream.index, stream.kind, stream.codec, stream.fps)
for packet in demuxer.packets():
    if isinstance(packet, DataPacket):
        print(packet.stream.kind, len(packet.data), packet.duration, packet.keyframe)
    elif isinstance(packet, CommentPacket):
        print(packet.comment.comments)
```

Streams are selected by their number within their family (audio, video,
text), starting at 1; `None` selects every stream of that family. Audio
streams with a codec other than PCM, MP3 or AC3 are skipped. Comment
packets are only yielded when no `comments` were passed to the demuxer.
A stream that ends without an end-of-stream packet gets an empty
`DataPacket` with `eos=True` once the file is exhausted.

## What it does not do

ogmkit only reads. It does not write OGM files, does not interleave
streams into a new Ogg file, does not decode or re-encode audio, video or
subtitle pictures, and installs no command-line tools.

## Running the tests

```
pip install "ogmkit[test]"
pytest
```