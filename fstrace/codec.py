"""
Line codec for telemetry records

Stream records:
    traceid_<id>,<node>,<path>,<op>,<contentLen>,<oldPos>,<realPos>,<positional>,<bytes>,<elapsedNanos>[,<diagnostic>]
Filesystem records:
    traceid_<id>,<node>,<path>,<op>,<contentLen>,<elapsedNanos>

Lines are written with the record kind tag in front ("InputStream: " or
"FileSystem: ") so a reader can tell the two shapes apart after any logging
framework prefix has been added. In <path>, "%" and "," are percent-escaped
so a path never spans fields.
"""

from urllib.parse import unquote

from .record import RecordKind, TelemetryRecord

MARKER = "traceid_"
FIELD_DELIMITER = ","
NULL_NODE = "null"

STREAM_FIELD_COUNT = 10
FILESYSTEM_FIELD_COUNT = 6


def str_to_long(value):
    """Parse an integer field, falling back to 0 for anything unparsable."""
    try:
        return int(value.strip())
    except (ValueError, AttributeError):
        return 0


def escape_subject(subject):
    """Percent-escape the delimiter so a path with commas stays one field."""
    return subject.replace("%", "%25").replace(FIELD_DELIMITER, "%2C")


def unescape_subject(field):
    return unquote(field)


def flatten(text):
    """Collapse free text into something that fits in a single line field."""
    if not text:
        return ""
    parts = [part.strip() for part in text.splitlines() if part.strip()]
    return " | ".join(parts).replace(FIELD_DELIMITER, ";")


def encode_body(record):
    """Serialize a record to its marker-prefixed field list."""
    fields = [
        f"{MARKER}{record.instance_id}",
        NULL_NODE if record.node is None else record.node,
        escape_subject(record.subject),
        record.operation,
        record.content_length,
    ]

    if record.kind is RecordKind.STREAM:
        fields += [
            record.old_position,
            record.real_position,
            record.positional,
            record.bytes_transferred,
            record.elapsed_ns,
        ]
        diagnostic = flatten(record.diagnostic)
        if diagnostic:
            fields.append(diagnostic)
    else:
        fields.append(record.elapsed_ns)

    return FIELD_DELIMITER.join(str(field) for field in fields)


def encode_line(record):
    return f"{record.kind.value}: {encode_body(record)}"


def classify(line):
    """Return the record kind tagged in front of the marker, or None."""
    index = line.find(MARKER)
    if index < 0:
        return None

    prefix = line[:index]
    if RecordKind.STREAM.value in prefix:
        return RecordKind.STREAM
    if RecordKind.FILESYSTEM.value in prefix:
        return RecordKind.FILESYSTEM
    return None


def decode_line(line):
    """Parse one log line into a TelemetryRecord.

    Returns None when the line is not a telemetry line. Numeric fields that
    do not parse decode to 0 and missing trailing fields are treated as
    empty, so truncated lines still produce a record.
    """
    kind = classify(line)
    if kind is None:
        return None

    body = line[line.index(MARKER):].strip()
    fields = body.split(FIELD_DELIMITER)

    expected = STREAM_FIELD_COUNT if kind is RecordKind.STREAM else FILESYSTEM_FIELD_COUNT
    if len(fields) < expected:
        fields += [""] * (expected - len(fields))

    instance_id = str_to_long(fields[0][len(MARKER):])
    node = None if fields[1] == NULL_NODE else fields[1]
    subject = unescape_subject(fields[2])
    operation = fields[3].strip()
    content_length = str_to_long(fields[4])

    if kind is RecordKind.FILESYSTEM:
        return TelemetryRecord(
            kind=kind,
            instance_id=instance_id,
            node=node,
            subject=subject,
            operation=operation,
            content_length=content_length,
            elapsed_ns=str_to_long(fields[5]),
        )

    bytes_transferred = str_to_long(fields[8])
    diagnostic = FIELD_DELIMITER.join(fields[STREAM_FIELD_COUNT:]) or None
    # hand-edited logs can leave a trailing field on a regular read
    if bytes_transferred not in (0, 1):
        diagnostic = None

    return TelemetryRecord(
        kind=kind,
        instance_id=instance_id,
        node=node,
        subject=subject,
        operation=operation,
        content_length=content_length,
        old_position=str_to_long(fields[5]),
        real_position=str_to_long(fields[6]),
        positional=str_to_long(fields[7]),
        bytes_transferred=bytes_transferred,
        elapsed_ns=str_to_long(fields[9]),
        diagnostic=diagnostic,
    )


__all__ = [
    "MARKER",
    "classify",
    "decode_line",
    "encode_body",
    "encode_line",
    "escape_subject",
    "flatten",
    "str_to_long",
    "unescape_subject",
]
