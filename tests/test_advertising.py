import pytest

from blepp.advertising import (
    AdvertisingFlags,
    BLEScanner,
    FilterDuplicates,
    GapType,
    HCIParseError,
    HCIScannerError,
    LeAdvertisingEventType,
    parse_advertisement_packet,
)
from blepp.transport import (
    AdvertisementData,
    BLEClientTransport,
    ScanType,
    TransportError,
)
from blepp.uuid import UUID, uuid16

ADDR = bytes([0x01, 0x00, 0x00, 0x00, 0xAD, 0xDE])
ADDR_TEXT = ":".join(f"{b:02x}" for b in reversed(ADDR))


def ad_element(kind, payload):
    return bytes([len(payload) + 1, kind]) + payload


def report(data, event_type=0, address=ADDR, rssi=-60):
    return bytes([event_type, 0]) + address + bytes([len(data)]) + data + bytes([rssi & 0xFF])


def packet(*reports, subevent=0x02):
    body = bytes([subevent, len(reports)]) + b"".join(reports)
    return bytes([0x04, 0x3E, len(body)]) + body


def test_empty_packet_gives_nothing():
    assert parse_advertisement_packet(b"") == []


def test_non_event_packet_raises():
    with pytest.raises(HCIParseError):
        parse_advertisement_packet(b"\x02\x00\x00")


def test_truncated_event_raises():
    with pytest.raises(HCIParseError):
        parse_advertisement_packet(b"\x04\x3e")


def test_bad_length_raises():
    with pytest.raises(HCIParseError):
        parse_advertisement_packet(b"\x04\x3e\x05\x02\x00")


def test_non_meta_event_raises():
    with pytest.raises(HCIParseError):
        parse_advertisement_packet(b"\x04\x0e\x01\x00")


def test_other_subevent_is_ignored():
    assert parse_advertisement_packet(packet(subevent=0x01)) == []


def test_truncated_report_header_raises():
    pkt = packet(report(b""))[:-3]
    pkt = pkt[:2] + bytes([len(pkt) - 3]) + pkt[3:]
    with pytest.raises(HCIParseError):
        parse_advertisement_packet(pkt)


def test_full_report():
    data = (
        ad_element(GapType.FLAGS, b"\x06")
        + ad_element(GapType.COMPLETE_LIST_OF_16_BIT_UUIDS, b"\x0f\x18")
        + ad_element(GapType.COMPLETE_LOCAL_NAME, b"Sensor")
        + ad_element(GapType.MANUFACTURER_DATA, b"\xff\xff\x01")
    )
    (rsp,) = parse_advertisement_packet(packet(report(data)))
    assert rsp.address == ADDR_TEXT
    assert rsp.type is LeAdvertisingEventType.ADV_IND
    assert rsp.rssi == -60
    assert rsp.flags.LE_general_discoverable
    assert rsp.flags.BR_EDR_unsupported
    assert not rsp.flags.LE_limited_discoverable
    assert rsp.uuids == [uuid16(0x180F)]
    assert rsp.uuid_16_bit_complete
    assert rsp.local_name.name == "Sensor" and rsp.local_name.complete
    assert rsp.manufacturer_specific_data == [b"\xff\xff\x01"]
    assert rsp.raw_packet == [data]


def test_128_bit_uuid_round_trip():
    u = UUID.parse("6e400001-b5a3-f393-e0a9-e50e24dcca9e")
    data = ad_element(GapType.INCOMPLETE_LIST_OF_128_BIT_UUIDS, u.le_bytes())
    (rsp,) = parse_advertisement_packet(packet(report(data)))
    assert rsp.uuids == [u]
    assert rsp.uuid_128_bit_complete is False


def test_shortened_name_is_incomplete():
    data = ad_element(GapType.SHORTENED_LOCAL_NAME, b"Sen")
    (rsp,) = parse_advertisement_packet(packet(report(data)))
    assert rsp.local_name.name == "Sen"
    assert rsp.local_name.complete is False


def test_unknown_element_kept_with_type():
    element = ad_element(GapType.TX_POWER_LEVEL, b"\x04")
    (rsp,) = parse_advertisement_packet(packet(report(element)))
    assert rsp.unparsed_data_with_types == [element[1:]]


def test_corrupt_report_is_skipped():
    good = report(ad_element(GapType.FLAGS, b"\x06"))
    bad = report(b"\x05\x09ab", address=bytes(6))
    responses = parse_advertisement_packet(packet(bad, good))
    assert [r.address for r in responses] == [ADDR_TEXT]


def test_odd_16_bit_uuid_list_is_skipped():
    data = ad_element(GapType.COMPLETE_LIST_OF_16_BIT_UUIDS, b"\x0f\x18\x0a")
    assert parse_advertisement_packet(packet(report(data))) == []


def test_unknown_event_type_kept_as_int():
    (rsp,) = parse_advertisement_packet(packet(report(b"", event_type=0x07)))
    assert rsp.type == 0x07
    assert not isinstance(rsp.type, LeAdvertisingEventType)


def test_flags_from_bytes_without_payload():
    flags = AdvertisingFlags.from_bytes(b"\x01")
    assert flags.flag_data == b""
    assert not flags.LE_general_discoverable


class QueueTransport(BLEClientTransport):
    def __init__(self, fail_start=False):
        super().__init__()
        self.fail_start = fail_start
        self.params = None
        self.scanning = False
        self.queue = []

    def start_scan(self, params):
        if self.fail_start:
            raise TransportError("no adapter")
        self.params = params
        self.scanning = True

    def stop_scan(self):
        self.scanning = False

    def get_advertisements(self, timeout_ms=0):
        out, self.queue = self.queue, []
        return out

    def connect(self, params):
        raise TransportError("not supported")

    def disconnect(self, fd):
        raise TransportError("not supported")

    def get_fd(self, fd):
        return -1

    def send(self, fd, data):
        raise TransportError("not supported")

    def receive(self, fd, max_len):
        return b""

    def get_mtu(self, fd):
        return 23

    def set_mtu(self, fd, mtu):
        raise TransportError("not supported")

    def transport_name(self):
        return "Queue"

    def is_available(self):
        return True

    def mac_address(self):
        return ""


def test_scanner_requires_transport():
    with pytest.raises(ValueError):
        BLEScanner(None)


def test_scanner_start_sets_params():
    t = QueueTransport()
    s = BLEScanner(t)
    s.start(passive=True)
    assert t.params.scan_type is ScanType.PASSIVE
    assert t.params.interval_ms == 1280 and t.params.window_ms == 26
    assert t.params.filter_duplicates is False


def test_scanner_hardware_filter_asks_transport():
    t = QueueTransport()
    BLEScanner(t, FilterDuplicates.HARDWARE).start()
    assert t.params.filter_duplicates is True
    assert t.params.scan_type is ScanType.ACTIVE


def test_scanner_start_failure():
    with pytest.raises(HCIScannerError):
        BLEScanner(QueueTransport(fail_start=True)).start()


def test_scanner_not_running():
    with pytest.raises(HCIScannerError):
        BLEScanner(QueueTransport()).get_advertisements()


def test_scanner_software_dedup():
    t = QueueTransport()
    ad = AdvertisementData(ADDR_TEXT, rssi=-50, event_type=0, data=b"\x02\x01\x06")
    with BLEScanner(t) as s:
        t.queue = [ad, ad]
        first = s.get_advertisements()
        t.queue = [ad]
        second = s.get_advertisements()
    assert len(first) == 1
    assert first[0].raw_packet == [ad.data]
    assert first[0].rssi == -50
    assert second == []
    assert t.scanning is False


def test_scanner_without_filter_keeps_duplicates():
    t = QueueTransport()
    ad = AdvertisementData(ADDR_TEXT, event_type=4)
    with BLEScanner(t, FilterDuplicates.OFF) as s:
        t.queue = [ad, ad]
        got = s.get_advertisements()
    assert [r.type for r in got] == [LeAdvertisingEventType.SCAN_RSP] * 2