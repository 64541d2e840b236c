"""Parsing of HCI LE advertising reports, and a transport-backed scanner."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from blepp.pretty_printers import to_hex_bytes
from blepp.transport import BLEClientTransport, ScanParams, ScanType, TransportError
from blepp.uuid import UUID, uuid16

__all__ = [
    "LeAdvertisingEventType",
    "GapType",
    "HCIParseError",
    "HCIScannerError",
    "AdvertisingFlags",
    "LocalName",
    "AdvertisingResponse",
    "parse_advertisement_packet",
    "FilterDuplicates",
    "BLEScanner",
]

_log = logging.getLogger(__name__)

_HCI_EVENT_PKT = 0x04
_EVT_LE_META_EVENT = 0x3E
_LE_ADVERTISING_REPORT = 0x02


class LeAdvertisingEventType(enum.IntEnum):
    """Kinds of LE advertising event."""

    ADV_IND = 0x00
    ADV_DIRECT_IND = 0x01
    ADV_SCAN_IND = 0x02
    ADV_NONCONN_IND = 0x03
    SCAN_RSP = 0x04


class GapType(enum.IntEnum):
    """Advertising data types."""

    FLAGS = 0x01
    INCOMPLETE_LIST_OF_16_BIT_UUIDS = 0x02
    COMPLETE_LIST_OF_16_BIT_UUIDS = 0x03
    INCOMPLETE_LIST_OF_32_BIT_UUIDS = 0x04
    COMPLETE_LIST_OF_32_BIT_UUIDS = 0x05
    INCOMPLETE_LIST_OF_128_BIT_UUIDS = 0x06
    COMPLETE_LIST_OF_128_BIT_UUIDS = 0x07
    SHORTENED_LOCAL_NAME = 0x08
    COMPLETE_LOCAL_NAME = 0x09
    TX_POWER_LEVEL = 0x0A
    MANUFACTURER_DATA = 0xFF


class HCIParseError(RuntimeError):
    """An HCI packet could not be parsed."""


class HCIScannerError(RuntimeError):
    """The scanner failed."""

    def __init__(self, why: str) -> None:
        super().__init__(why)
        _log.error("%s", why)


class _Truncated(Exception):
    pass


class _Span:
    """A consuming view over bytes that raises when read past its end."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def pop(self) -> int:
        if not len(self):
            raise _Truncated
        value = self._data[self._pos]
        self._pos += 1
        return value

    def take(self, n: int) -> _Span:
        if n > len(self):
            raise _Truncated
        span = _Span(self._data[self._pos:self._pos + n])
        self._pos += n
        return span

    def peek(self) -> int:
        if not len(self):
            raise _Truncated
        return self._data[self._pos]

    def rest(self) -> bytes:
        return self._data[self._pos:]


@dataclass(frozen=True)
class AdvertisingFlags:
    """The flags advertising data element (Core 4.0, Vol 3, Part C, 18.1)."""

    flag_data: bytes = b""
    LE_limited_discoverable: bool = False
    LE_general_discoverable: bool = False
    BR_EDR_unsupported: bool = False
    simultaneous_LE_BR_controller: bool = False
    simultaneous_LE_BR_host: bool = False

    @classmethod
    def from_bytes(cls, data: bytes) -> AdvertisingFlags:
        """Build from a flags element whose first byte is the type field."""
        flag_data = bytes(data[1:])
        if not flag_data:
            return cls(flag_data)
        bits = flag_data[0]
        return cls(
            flag_data,
            LE_limited_discoverable=bool(bits & 0x01),
            LE_general_discoverable=bool(bits & 0x02),
            BR_EDR_unsupported=bool(bits & 0x04),
            simultaneous_LE_BR_controller=bool(bits & 0x08),
            simultaneous_LE_BR_host=bool(bits & 0x10),
        )


@dataclass(frozen=True)
class LocalName:
    """A device's advertised name."""

    name: str
    complete: bool


@dataclass
class AdvertisingResponse:
    """One parsed advertising report."""

    address: str = ""
    type: Union[LeAdvertisingEventType, int] = LeAdvertisingEventType.ADV_IND
    rssi: int = 0
    flags: Optional[AdvertisingFlags] = None
    local_name: Optional[LocalName] = None
    uuids: list[UUID] = field(default_factory=list)
    uuid_16_bit_complete: bool = False
    uuid_128_bit_complete: bool = False
    manufacturer_specific_data: list[bytes] = field(default_factory=list)
    unparsed_data_with_types: list[bytes] = field(default_factory=list)
    raw_packet: list[bytes] = field(default_factory=list)


def _event_type(value: int) -> Union[LeAdvertisingEventType, int]:
    try:
        return LeAdvertisingEventType(value)
    except ValueError:
        return value


def _signed8(value: int) -> int:
    return value - 256 if value > 127 else value


def parse_advertisement_packet(packet: bytes) -> list[AdvertisingResponse]:
    """Parse a raw HCI packet holding LE advertising reports.

    An empty packet gives an empty list; a packet that is not an LE meta
    event, or whose framing is broken, raises ``HCIParseError``. A report
    whose advertising data is corrupt is logged and left out.
    """
    packet = bytes(packet)
    _log.debug("%s", to_hex_bytes(packet))
    if not packet:
        _log.error("Empty packet received")
        return []
    span = _Span(packet)
    if span.pop() != _HCI_EVENT_PKT:
        _log.error("Unknown HCI packet received")
        raise HCIParseError("Unknown HCI packet received")
    try:
        return _parse_event_packet(span)
    except _Truncated:
        raise HCIParseError("Truncated advertising report") from None


def _parse_event_packet(span: _Span) -> list[AdvertisingResponse]:
    if len(span) < 2:
        raise HCIParseError("Truncated event packet")
    event_code = span.pop()
    length = span.pop()
    if len(span) != length:
        raise HCIParseError("Bad packet length")
    if event_code != _EVT_LE_META_EVENT:
        _log.info("event_code = 0x%02x, length = %d", event_code, length)
        raise HCIParseError("Unexpected HCI event packet")
    _log.info("event_code = 0x%02x: Meta event, length = %d", event_code, length)
    subevent_code = span.pop()
    if subevent_code != _LE_ADVERTISING_REPORT:
        _log.info("subevent_code = %d", subevent_code)
        return []
    return _parse_advertising_reports(span)


def _parse_advertising_reports(span: _Span) -> list[AdvertisingResponse]:
    reports = []
    num_reports = span.pop()
    _log.info("num_reports = %d", num_reports)
    for _ in range(num_reports):
        event_type = _event_type(span.pop())
        if isinstance(event_type, LeAdvertisingEventType):
            _log.info("event_type = %s", event_type.name)
        else:
            _log.warning("event_type = 0x%02x, unknown", event_type)
        address_type = span.pop()
        _log.info("Address type = %d", address_type)
        raw_address = span.take(6).rest()
        address = ":".join(f"{b:02x}" for b in reversed(raw_address))
        data = span.take(span.pop())
        rssi = _signed8(span.pop())
        _log.info("address = %s, rssi = %d", address, rssi)

        rsp = AdvertisingResponse(address=address, type=event_type, rssi=rssi)
        rsp.raw_packet.append(data.rest())
        try:
            _parse_report_data(rsp, data)
        except _Truncated:
            _log.error("Corrupted data sent by device %s", address)
            continue
        reports.append(rsp)
    return reports


def _parse_report_data(rsp: AdvertisingResponse, data: _Span) -> None:
    while len(data):
        chunk = data.take(data.pop())
        kind = chunk.peek()
        if kind == GapType.FLAGS:
            rsp.flags = AdvertisingFlags.from_bytes(chunk.rest())
            _log.info("Flags = %s", to_hex_bytes(rsp.flags.flag_data))
        elif kind in (
            GapType.INCOMPLETE_LIST_OF_16_BIT_UUIDS,
            GapType.COMPLETE_LIST_OF_16_BIT_UUIDS,
        ):
            rsp.uuid_16_bit_complete = kind == GapType.COMPLETE_LIST_OF_16_BIT_UUIDS
            chunk.pop()
            while len(chunk):
                low = chunk.pop()
                high = chunk.pop()
                rsp.uuids.append(uuid16(low | (high << 8)))
        elif kind in (
            GapType.INCOMPLETE_LIST_OF_128_BIT_UUIDS,
            GapType.COMPLETE_LIST_OF_128_BIT_UUIDS,
        ):
            rsp.uuid_128_bit_complete = kind == GapType.COMPLETE_LIST_OF_128_BIT_UUIDS
            chunk.pop()
            while len(chunk):
                rsp.uuids.append(UUID.from_le_bytes(chunk.take(16).rest()))
        elif kind in (GapType.SHORTENED_LOCAL_NAME, GapType.COMPLETE_LOCAL_NAME):
            chunk.pop()
            rsp.local_name = LocalName(
                name=chunk.rest().decode("utf-8", errors="replace"),
                complete=kind == GapType.COMPLETE_LOCAL_NAME,
            )
            _log.info("Name: %s", rsp.local_name.name)
        elif kind == GapType.MANUFACTURER_DATA:
            chunk.pop()
            rsp.manufacturer_specific_data.append(chunk.rest())
            _log.info("Manufacturer data: %s", to_hex_bytes(chunk.rest()))
        else:
            rsp.unparsed_data_with_types.append(chunk.rest())
            _log.info("Unparsed chunk %s", to_hex_bytes(chunk.rest()))


class FilterDuplicates(enum.Enum):
    """Where duplicate advertisements are removed."""

    OFF = "off"
    HARDWARE = "hardware"
    SOFTWARE = "software"


class BLEScanner:
    """Scan for advertisements through any client transport.

    Usable as a context manager, which starts scanning on entry and
    stops on exit.
    """

    def __init__(
        self,
        transport: BLEClientTransport,
        filter: FilterDuplicates = FilterDuplicates.SOFTWARE,
    ) -> None:
        if transport is None:
            raise ValueError("BLEScanner: transport cannot be None")
        self._transport = transport
        self._running = False
        self._software_filtering = filter is FilterDuplicates.SOFTWARE
        self._seen: set[tuple[str, int]] = set()

    @property
    def running(self) -> bool:
        return self._running

    def start(self, passive: bool = False) -> None:
        """Start scanning; does nothing if already running."""
        if self._running:
            _log.debug("Scanner is already running")
            return
        params = ScanParams(
            scan_type=ScanType.PASSIVE if passive else ScanType.ACTIVE,
            interval_ms=1280,
            window_ms=26,
            filter_duplicates=not self._software_filtering,
        )
        try:
            self._transport.start_scan(params)
        except TransportError as exc:
            raise HCIScannerError("Failed to start scan") from exc
        self._seen.clear()
        self._running = True
        _log.info("BLE scanner started")

    def stop(self) -> None:
        """Stop scanning; does nothing if not running."""
        if not self._running:
            return
        try:
            self._transport.stop_scan()
        except TransportError as exc:
            raise HCIScannerError("Failed to stop scan") from exc
        self._running = False
        _log.info("BLE scanner stopped")

    def get_advertisements(self, timeout_ms: int = 0) -> list[AdvertisingResponse]:
        """Collect advertisements from the transport as responses."""
        if not self._running:
            raise HCIScannerError("Scanner not running")
        try:
            ads = self._transport.get_advertisements(timeout_ms)
        except TransportError as exc:
            raise HCIScannerError("Failed to get advertisements") from exc

        responses = []
        for ad in ads:
            rsp = AdvertisingResponse(
                address=ad.address,
                type=_event_type(ad.event_type),
                rssi=ad.rssi,
                raw_packet=[bytes(ad.data)],
            )
            if self._software_filtering:
                key = (rsp.address, int(rsp.type))
                if key in self._seen:
                    continue
                self._seen.add(key)
            responses.append(rsp)
        return responses

    def __enter__(self) -> BLEScanner:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()