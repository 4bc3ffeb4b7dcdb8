from ogmkit.subtitles import Subtitle, SubtitleQueue, format_timestamp


def _queue(*entries):
    queue = SubtitleQueue()
    for start, end, text in entries:
        queue.add(start, end, text)
    return queue


def test_get_next_is_fifo():
    queue = _queue((0, 10, "a"), (20, 30, "b"))
    assert queue.get_next() == Subtitle(0, 10, "a")
    assert queue.get_next() == Subtitle(20, 30, "b")
    assert queue.get_next() is None


def test_len_and_iter():
    queue = _queue((0, 10, "a"), (20, 30, "b"))
    assert len(queue) == 2
    assert [s.text for s in queue] == ["a", "b"]


def test_check_clean_queue():
    queue = _queue((0, 1000, "a"), (2000, 3000, "b"))
    assert queue.check() is False
    assert [(s.start, s.end) for s in queue] == [(0, 1000), (2000, 3000)]


def test_check_fixes_overlap():
    queue = _queue((0, 2000, "a"), (1500, 3000, "b"))
    assert queue.check() is False
    first, second = list(queue)
    assert first.end == second.start - 1
    assert second.end == 3000


def test_check_reports_inverted_entry():
    queue = _queue((1000, 500, "x"))
    assert queue.check() is True


def test_check_reports_entry_broken_by_fix():
    queue = _queue((1000, 5000, "a"), (1000, 2000, "b"))
    assert queue.check() is True
    first = next(iter(queue))
    assert first.start > first.end


def test_check_silent_without_verbose(capsys):
    _queue((0, 2000, "a"), (1500, 3000, "b")).check()
    assert capsys.readouterr().out == ""


def test_check_verbose_warnings(capsys):
    queue = _queue((0, 2000, "line one\nline two"), (1500, 3000, "b"))
    queue.check(verbose=True)
    out = capsys.readouterr().out
    assert "Warning: current entry ends after the next one starts" in out
    assert '"line one line two"...' in out


def test_check_verbose_truncates_text(capsys):
    text = "abcdefghijklmnopqrstuvwxyz"
    _queue((500, 100, text)).check(verbose=True)
    out = capsys.readouterr().out
    assert f'"{text[:20]}"...' in out
    assert text not in out


def test_format_timestamp():
    assert format_timestamp(3723004) == "01:02:03,004"
    assert format_timestamp(0) == "00:00:00,000"


def test_process_marks_last_entry():
    queue = _queue((0, 10, "a"), (20, 30, "b"), (40, 50, "c"))
    received = []
    queue.process(lambda start, end, text, last: received.append((start, end, text, last)))
    assert received == [
        (0, 10, "a", False),
        (20, 30, "b", False),
        (40, 50, "c", True),
    ]
    assert len(queue) == 0


def test_process_empty_queue():
    received = []
    SubtitleQueue().process(lambda *args: received.append(args))
    assert received == []