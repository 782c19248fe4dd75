import pytest

from fstrace.codec import classify, decode_line, encode_body, encode_line, str_to_long
from fstrace.record import (
    CLOSED_POSITION,
    NOT_AVAILABLE,
    RecordKind,
    TelemetryRecord,
    filesystem_record,
    next_instance_id,
    stream_record,
)


def test_stream_record_round_trip():
    record = stream_record(
        instance_id=42,
        node="10.0.0.1",
        subject="/warehouse/store_sales/part-0000.orc",
        operation="read",
        content_length=1024,
        old_position=0,
        real_position=512,
        positional=NOT_AVAILABLE,
        bytes_transferred=512,
        elapsed_ns=1500,
    )

    line = encode_line(record)
    assert line.startswith("InputStream: traceid_42,")
    assert decode_line(line) == record


def test_stream_record_round_trip_with_diagnostic():
    record = stream_record(
        7, "10.0.0.1", "/f", "read", 10, 3, 4, -1, 1, 99, diagnostic="File x.py line 3 | read()"
    )

    decoded = decode_line(encode_line(record))

    assert decoded == record
    assert decoded.diagnostic == "File x.py line 3 | read()"


def test_filesystem_record_round_trip():
    record = filesystem_record(3, "10.0.0.2", "/warehouse", "listStatus", 12, 8000)

    body = encode_body(record)

    assert body == "traceid_3,10.0.0.2,/warehouse,listStatus,12,8000"
    assert decode_line(encode_line(record)) == record


def test_subject_with_delimiter_round_trips():
    record = stream_record(1, "n1", "s3://b/dt=2024,region=eu/part-0", "read", 1000, 0, 100, -1, 100, 55)

    line = encode_line(record)

    assert "dt=2024%2Cregion=eu" in line
    assert decode_line(line) == record


def test_subject_with_percent_round_trips():
    record = filesystem_record(2, "n1", "/logs/100%2C5%/a,b", "open", 10, 3)
    assert decode_line(encode_line(record)).subject == "/logs/100%2C5%/a,b"


def test_missing_node_round_trips_as_null():
    record = filesystem_record(5, None, "/a", "mkdirs", -1, 10)

    line = encode_line(record)

    assert ",null," in line
    assert decode_line(line).node is None


def test_closed_position_sentinel_survives_encoding():
    record = stream_record(1, "n1", "/a", "close", 10, 10, CLOSED_POSITION, -1, -1, 5)
    assert decode_line(encode_line(record)).real_position == CLOSED_POSITION


def test_diagnostic_is_flattened_to_one_field():
    record = stream_record(1, "n1", "/a", "read", 10, 0, 0, -1, 0, 5, diagnostic="a, b\n  c\n")

    line = encode_line(record)

    assert "\n" not in line
    assert len(line.split(",")) == 11
    assert decode_line(line).diagnostic == "a; b | c"


def test_empty_diagnostic_is_omitted():
    record = stream_record(1, "n1", "/a", "read", 10, 0, 1, -1, 1, 5, diagnostic="")
    assert record.diagnostic is None
    assert len(encode_body(record).split(",")) == 10


def test_decode_skips_logging_prefix():
    line = (
        "2026-10-17 09:00:00,001 [INFO] fstrace.telemetry: "
        "InputStream: traceid_9,n1,/a,readFully,100,0,0,40,60,700"
    )

    record = decode_line(line)

    assert record.kind is RecordKind.STREAM
    assert record.instance_id == 9
    assert record.positional == 40
    assert record.bytes_transferred == 60
    assert record.elapsed_ns == 700


def test_lines_without_marker_or_tag_are_not_records():
    assert decode_line("INFO some unrelated message") is None
    assert decode_line("INFO mystery traceid_1,n1,/a,read,1,2,3,4,5,6") is None
    assert classify("FileSystem: opened a file") is None


def test_non_numeric_fields_default_to_zero():
    record = decode_line("InputStream: traceid_7,n1,/f,read,abc,0,10,-1,xyz,55")

    assert record.content_length == 0
    assert record.bytes_transferred == 0
    assert record.elapsed_ns == 55


def test_truncated_line_is_padded():
    record = decode_line("FileSystem: traceid_3,n1,/f,open")

    assert record.operation == "open"
    assert record.content_length == 0
    assert record.elapsed_ns == 0


def test_trailing_field_on_large_read_is_dropped():
    record = decode_line("InputStream: traceid_7,n1,/f,read,10,0,10,-1,10,55,junk")
    assert record.diagnostic is None


def test_str_to_long():
    assert str_to_long("12") == 12
    assert str_to_long(" -1 ") == -1
    assert str_to_long("1.5") == 0
    assert str_to_long("") == 0
    assert str_to_long(None) == 0


def test_record_invariants():
    with pytest.raises(ValueError):
        filesystem_record(1, "n1", "/a", "", -1, 10)
    with pytest.raises(ValueError):
        filesystem_record(1, "n1", "/a", "open", -1, -5)
    with pytest.raises(ValueError):
        stream_record(1, "n1", "/a", "read", 10, 0, 10, -1, 10, 5, diagnostic="trace")
    with pytest.raises(ValueError):
        TelemetryRecord(RecordKind.FILESYSTEM, 1, "n1", "/a", "open", diagnostic="trace")


def test_instance_ids_are_unique_and_increasing():
    first = next_instance_id()
    second = next_instance_id()
    assert second > first
