from datetime import datetime, timezone

import pytest

from audio.ears import EarMode
from audiometry.exporter import (
    CSV_HEADER,
    SessionRecord,
    ValidationError,
    build_record,
    export_filename,
    record_to_csv,
)
from audiometry.reference import FREQUENCIES
from audiometry.storage import safe_initials, save_record

NOW = datetime(2024, 3, 5, 14, 7, 9, 123000, tzinfo=timezone.utc)


def _maps(both=100, left=100, right=100):
    return {
        EarMode.BOTH: {f: both for f in FREQUENCIES},
        EarMode.LEFT: {f: left for f in FREQUENCIES},
        EarMode.RIGHT: {f: right for f in FREQUENCIES},
    }


@pytest.mark.parametrize("initials, age", [
    ("", "30"),
    ("   ", "30"),
    ("AB", ""),
    ("AB", None),
    ("AB", "abc"),
    ("AB", "-4"),
    ("AB", "30.5"),
])
def test_invalid_subject_rejected(initials, age):
    with pytest.raises(ValidationError):
        build_record(initials, age, _maps(), 50, now=NOW)


def test_record_values():
    record = build_record(" CD ", " 41 ", _maps(both=60, left=70, right=80), 50, now=NOW)
    assert record.initials == "CD"
    assert record.age == 41
    assert record.thresholds[EarMode.BOTH][0] == 10.0
    assert record.thresholds[EarMode.RIGHT][0] == 30.0
    assert record.audiograms[EarMode.LEFT][0] == pytest.approx(21.4 - 20.0)
    assert record.iso_timestamp == "2024-03-05T14:07:09.123Z"


def test_csv_layout():
    record = build_record("AB", 30, _maps(), 50, now=NOW)
    lines = record_to_csv(record).split('\n')
    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[1] == "125,50.0,50.0,50.0,-28.6,-28.6,-28.6"
    assert lines[8] == "12000,50.0,50.0,50.0,-38.0,-38.0,-38.0"
    assert lines[9:] == [
        "",
        "Information",
        "Initials,AB",
        "Age,30",
        "Date,2024-03-05T14:07:09.123Z",
        "",
    ]


def test_csv_column_order_is_both_left_right():
    record = build_record("AB", 30, _maps(both=90, left=80, right=70), 50, now=NOW)
    row = record_to_csv(record).split('\n')[4].split(',')
    assert row[:4] == ["1000", "40.0", "30.0", "20.0"]


def test_export_filename():
    assert export_filename("AB") == "audibility_data_AB.csv"
    assert safe_initials("A/B") == "A_B"
    assert safe_initials("../") == "anonimo"


def test_save_record_atomic(tmp_path):
    record = build_record("AB", 30, _maps(), 50, now=NOW)
    path = save_record(record, tmp_path / "out")
    assert path.name == "audibility_data_AB.csv"
    assert path.read_text(encoding='utf-8') == record_to_csv(record)
    assert [p.name for p in path.parent.iterdir()] == [path.name]


def test_save_record_overwrites(tmp_path):
    first = build_record("AB", 30, _maps(), 50, now=NOW)
    second = build_record("AB", 31, _maps(), 50, now=NOW)
    save_record(first, tmp_path)
    path = save_record(second, tmp_path)
    assert "Age,31" in path.read_text(encoding='utf-8')


def test_all_thresholds_fifty_at_default_knob():
    record = build_record("AB", 30, _maps(), 50, now=NOW)
    for ear in EarMode:
        assert record.thresholds[ear] == (50.0,) * len(FREQUENCIES)


def test_record_cannot_be_modified():
    record = build_record("AB", 30, _maps(), 50, now=NOW)
    with pytest.raises(TypeError):
        record.thresholds[EarMode.BOTH] = (999.0,) * len(FREQUENCIES)
    with pytest.raises(TypeError):
        record.audiograms[EarMode.LEFT] = ()
    assert "999.0" not in record_to_csv(record)


def test_record_detached_from_source_maps():
    source = {ear: [1.0, 2.0] for ear in EarMode}
    record = SessionRecord("AB", 30, NOW, (125, 250), source, source)
    source[EarMode.BOTH].append(3.0)
    source[EarMode.LEFT] = [9.0]
    assert record.thresholds[EarMode.BOTH] == (1.0, 2.0)
    assert record.audiograms[EarMode.LEFT] == (1.0, 2.0)
