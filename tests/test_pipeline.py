"""Tests for the lazy decode pipeline."""

import pytest

from teleinfo2mqtt.errors import (
    ChecksumError,
    EncodingError,
    MissingFieldError,
    TransportEnded,
)
from teleinfo2mqtt.framing import LabelSyncFrameAssembler
from teleinfo2mqtt.pipeline import decode, decode_frame
from teleinfo2mqtt.reading import Reading


def _chunked(data: bytes, size: int) -> list[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


def test_decode_frame_returns_errors(frame_text):
    assert isinstance(decode_frame(frame_text), Reading)
    assert isinstance(decode_frame(frame_text.replace("E", "X", 1)), ChecksumError)
    assert isinstance(decode_frame(frame_text.rsplit("\n", 1)[0]), MissingFieldError)


@pytest.mark.parametrize("size", [1, 3, 64, 10_000])
def test_decode_any_chunking(wire_frame, size):
    items = list(decode(_chunked(wire_frame * 2, size)))
    assert len(items) == 2
    assert all(isinstance(item, Reading) for item in items)
    assert items[0] == items[1]
    assert items[0].adco == "012345678901"


def test_decode_bad_frame_isolated(wire_frame):
    """P2: a corrupt frame is reported once and decoding carries on."""
    corrupt = wire_frame.replace(b"012345678901 E", b"012345678901 X")
    items = list(decode([wire_frame, corrupt, wire_frame]))
    assert [type(item) for item in items] == [Reading, ChecksumError, Reading]


def test_decode_missing_field_reported(wire_frame):
    truncated = wire_frame.replace(b"\nMOTDETAT 000000 B\r", b"")
    items = list(decode([truncated]))
    assert len(items) == 1
    assert isinstance(items[0], MissingFieldError)
    assert items[0].label == "MOTDETAT"


def test_decode_no_item_before_sync(wire_frame):
    """P5: unsynchronized bytes are dropped without any error item."""
    assert list(decode([b"PAPP 00390 -\r\x03\nHHPHC"])) == []
    assert len(list(decode([b"PAPP 00390 -\r\x03", wire_frame]))) == 1


def test_decode_without_check(wire_frame):
    corrupt = wire_frame.replace(b"012345678901 E", b"012345678901 X")
    items = list(decode([corrupt], check=False))
    assert isinstance(items[0], Reading)


def test_decode_label_sync_encoding_error(frame_text):
    text = (frame_text + "\n").encode("ascii")
    items = list(decode([text, b"\xe9\xe9", text, b"ADCO"], LabelSyncFrameAssembler()))
    assert [type(item) for item in items] == [EncodingError, Reading, Reading]


def test_decode_is_lazy(wire_frame):
    """Nothing is read from the source beyond what the consumer asked for."""
    pulled = []

    def source():
        for chunk in (wire_frame, wire_frame, wire_frame):
            pulled.append(chunk)
            yield chunk

    readings = decode(source())
    next(readings)
    assert len(pulled) == 1


def test_decode_transport_failure_propagates(wire_frame):
    def source():
        yield wire_frame
        raise TransportEnded("port débranché")

    readings = decode(source())
    assert isinstance(next(readings), Reading)
    with pytest.raises(TransportEnded):
        next(readings)


def test_closing_pipeline_closes_source(wire_frame):
    released = []

    def source():
        try:
            while True:
                yield wire_frame
        finally:
            released.append(True)

    readings = decode(source())
    next(readings)
    readings.close()
    assert released == [True]
