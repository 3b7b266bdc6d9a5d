import json
from datetime import datetime, timezone

import pytest

from floorwatch.data.history import FloorHistory, HistoryFile
from floorwatch.errors import HistoryReadError, PersistError
from floorwatch.utils.types import Observation

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2024, 5, 1, 12, 5, 0, tzinfo=timezone.utc)


def test_latest_floor_newest_match_wins():
    h = FloorHistory([
        Observation("x", 2.0, T0),
        Observation("y", 9.0, T0),
        Observation("x", 3.0, T1),
    ])
    assert h.latest_floor("x") == 3.0
    assert h.latest_floor("y") == 9.0

def test_latest_floor_absent_is_zero():
    assert FloorHistory().latest_floor("nope") == 0.0

def test_extended_appends_without_touching_original():
    h = FloorHistory([Observation("x", 2.0, T0)])
    h2 = h.extended({"x": 4.0, "z": 1.5}, ts=T1)
    assert len(h) == 1
    assert len(h2) == 3
    assert [o.slug for o in h2] == ["x", "x", "z"]
    assert all(o.timestamp == T1 for o in list(h2)[1:])
    assert h2.latest_floor("x") == 4.0

def test_missing_file_is_empty_history(tmp_path):
    h = HistoryFile(tmp_path / "history.json").load()
    assert len(h) == 0

def test_save_then_load_keeps_order(tmp_path):
    hf = HistoryFile(tmp_path / "nested" / "history.json")
    h = FloorHistory([Observation("x", 2.0, T0), Observation("x", 3.0, T1)])
    hf.save(h)

    raw = json.loads((tmp_path / "nested" / "history.json").read_text())
    assert raw[0] == {"slug": "x", "floor": 2.0, "date": "2024-05-01T12:00:00+00:00"}
    loaded = hf.load()
    assert list(loaded) == list(h)
    assert not (tmp_path / "nested" / "history.json.tmp").exists()

def test_reads_go_style_timestamps(tmp_path):
    p = tmp_path / "history.json"
    p.write_text(json.dumps([
        {"slug": "degods", "floor": 310.5, "date": "2022-03-01T10:11:12.123456789+01:00"},
        {"slug": "degods", "floor": 312, "date": "2022-03-01T10:12:00Z"},
    ]))
    h = HistoryFile(p).load()
    assert h.latest_floor("degods") == 312.0
    first = next(iter(h))
    assert first.timestamp.microsecond == 123456
    assert first.timestamp.utcoffset().total_seconds() == 3600

@pytest.mark.parametrize("content", [
    "{not json",
    '{"slug": "x"}',
    '[{"slug": "x", "floor": "1.0", "date": "2024-01-01T00:00:00Z"}]',
    '[{"slug": "x", "floor": 1.0, "date": "yesterday"}]',
])
def test_unreadable_history_raises(tmp_path, content):
    p = tmp_path / "history.json"
    p.write_text(content)
    with pytest.raises(HistoryReadError):
        HistoryFile(p).load()

def test_empty_or_null_file_is_empty_history(tmp_path):
    p = tmp_path / "history.json"
    p.write_text("")
    assert len(HistoryFile(p).load()) == 0
    p.write_text("null")
    assert len(HistoryFile(p).load()) == 0

def test_save_to_unwritable_location_raises(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    hf = HistoryFile(blocker / "history.json")  # parent is a regular file
    with pytest.raises(PersistError):
        hf.save(FloorHistory([Observation("x", 1.0, T0)]))

def test_invalid_utf8_raises_read_error(tmp_path):
    p = tmp_path / "history.json"
    p.write_bytes(b'[{"slug": "\xff\xfe"}]')
    with pytest.raises(HistoryReadError):
        HistoryFile(p).load()
