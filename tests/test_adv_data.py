import pytest

from blepp.adv_data import AdvertisingParams, build_advertising_data
from blepp.uuid import UUID, uuid16

FLAGS = b"\x02\x01\x06"


def _elements(payload):
    out = []
    pos = 0
    while pos < len(payload):
        length = payload[pos]
        out.append((payload[pos + 1], payload[pos + 2:pos + 1 + length]))
        pos += 1 + length
    assert pos == len(payload)
    return out


def test_only_flags_by_default():
    assert build_advertising_data(AdvertisingParams()) == FLAGS


def test_custom_data_used_verbatim():
    params = AdvertisingParams(device_name="ignored", advertising_data=b"\x02\x01\x04")
    assert build_advertising_data(params) == b"\x02\x01\x04"


def test_uuids_and_name():
    params = AdvertisingParams(device_name="ab", service_uuids=[uuid16(0x180F)])
    payload = build_advertising_data(params)
    assert payload.startswith(FLAGS)
    assert _elements(payload) == [
        (0x01, b"\x06"),
        (0x03, uuid16(0x180F).le_bytes()),
        (0x09, b"ab"),
    ]


def test_128_bit_uuids_left_out():
    long_uuid = UUID.parse("12345678-1234-5678-1234-56789abcdef0")
    params = AdvertisingParams(service_uuids=[long_uuid, uuid16(0x1234)])
    elements = _elements(build_advertising_data(params))
    assert elements[1] == (0x03, uuid16(0x1234).le_bytes())


def test_only_long_uuids_gives_empty_list_element():
    long_uuid = UUID.parse("12345678-1234-5678-1234-56789abcdef0")
    params = AdvertisingParams(service_uuids=[long_uuid])
    assert _elements(build_advertising_data(params)) == [(0x01, b"\x06"), (0x03, b"")]


def test_long_name_truncated_to_fit():
    name = "n" * 40
    payload = build_advertising_data(AdvertisingParams(device_name=name))
    assert len(payload) <= 31
    kind, value = _elements(payload)[-1]
    assert kind == 0x09
    assert name.encode().startswith(value)
    assert len(value) > 0


def test_no_room_for_name_raises():
    uuids = [uuid16(i) for i in range(14)]
    with pytest.raises(ValueError):
        build_advertising_data(AdvertisingParams(device_name="x", service_uuids=uuids))


def test_too_many_uuids_raises():
    uuids = [uuid16(i) for i in range(20)]
    with pytest.raises(ValueError):
        build_advertising_data(AdvertisingParams(service_uuids=uuids))


def test_oversized_custom_data_rejected():
    with pytest.raises(ValueError):
        AdvertisingParams(advertising_data=bytes(32))


def test_oversized_scan_response_rejected():
    with pytest.raises(ValueError):
        AdvertisingParams(scan_response_data=bytes(40))


def test_bad_interval_rejected():
    with pytest.raises(ValueError):
        AdvertisingParams(min_interval_ms=500, max_interval_ms=100)