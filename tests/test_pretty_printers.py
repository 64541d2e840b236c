import pytest

from blepp.pretty_printers import (
    to_hex_bytes,
    to_hex_u8,
    to_hex_u16,
    to_str_byte,
    to_str_bytes,
    uuid_to_str,
)
from blepp.uuid import uuid16, uuid32, uuid128


@pytest.mark.parametrize("value", [0, 5, 0x0A, 0x7F, 0xFF])
def test_hex_u8_round_trip(value):
    text = to_hex_u8(value)
    assert len(text) == 2
    assert int(text, 16) == value
    assert text == text.lower()


@pytest.mark.parametrize("value", [0, 0x2A, 0x1234, 0xFFFF])
def test_hex_u16_round_trip(value):
    text = to_hex_u16(value)
    assert len(text) == 4
    assert int(text, 16) == value


def test_hex_bytes_round_trip():
    data = bytes([0x01, 0xAB, 0x00, 0xFF])
    text = to_hex_bytes(data)
    assert text.endswith(" ")
    assert len(text) == 3 * len(data)
    assert bytes.fromhex(text) == data


def test_hex_bytes_empty():
    assert to_hex_bytes(b"") == ""


def test_printable_bytes_stay_themselves():
    assert to_str_byte(ord("A")) == "A"
    assert to_str_bytes(b"Hello ~") == "Hello ~"


def test_non_printable_bytes_escaped():
    assert to_str_byte(0x1F) == "\\x1f"
    assert to_str_byte(127).startswith("\\x")
    assert to_str_bytes(b"hi\x00") == "hi\\x00"


def test_uuid_to_str():
    assert uuid_to_str(uuid16(0x180D)) == "180d"
    full = uuid128(bytes(range(16)))
    assert uuid_to_str(full) == str(full)
    assert uuid_to_str(uuid32(0x180D)) == "uuid.wtf"