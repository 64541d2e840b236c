# blepp

Pure-Python building blocks for Bluetooth Low Energy work: UUID handling,
views over ATT protocol responses, parsing of HCI LE advertising reports,
a scanner that works over any pluggable transport, GATT service definitions
and advertising payload construction. It has no dependencies beyond the
standard library.

## Installation

```
pip install .
pip install ".[test]"   # with pytest
```

## UUIDs (`blepp.uuid`)

```python
from blepp.uuid import UUID, uuid16

battery = uuid16(0x180F)
full = UUID.parse("0000180f-0000-1000-8000-00805f9b34fb")
assert battery == full          # compared through their 128-bit forms
print(str(battery))             # 180f
print(str(battery.to_uuid128()))
print(battery.le_bytes())       # b'\x0f\x18'
```

`UUID.parse` accepts 4- or 6-character strings as 16-bit UUIDs, 8- or
10-character strings as 32-bit UUIDs and the 36-character long form as a
128-bit UUID; anything else raises `ValueError`. `UUID.from_le_bytes` takes
the 2-, 4- or 16-byte little-endian wire form. `uuid16`, `uuid32` and
`uuid128` are shorthand constructors. UUIDs are hashable.

## ATT responses (`blepp.att_pdu`)

```python
from blepp.att_pdu import PDUResponse, PDUReadResponse

pdu = PDUResponse(bytes([0x0B, 0x01, 0x02, 0x03]))
read = PDUReadResponse(pdu)
print(read.value())             # b'\x01\x02\x03'
```

Views are provided for error responses, read responses, read-by-type,
read-by-group-type, find-information responses and notifications or
indications, plus the GATT interpretations `GATTReadCharacteristic`
(yielding `CharacteristicDeclaration` records), `GATTReadCCC` and
`GATTReadServiceGroup`. `AttOpcode` lists the opcodes. Building a view from
a PDU of the wrong kind raises `PDUTypeError`; a malformed packet raises
`PDUFormatError`.

## Advertisement parsing (`blepp.advertising`)

```python
from blepp.advertising import parse_advertisement_packet

packet = bytes([
    0x04, 0x3E, 0x0F,             # HCI event, LE meta event, length
    0x02, 0x01,                   # advertising report, one report
    0x00, 0x00,                   # ADV_IND, public address
    0x01, 0x02, 0x03, 0x04, 0x05, 0x06,
    0x03, 0x02, 0x01, 0x06,       # 3 bytes of data: a flags element
    0xC8,                         # RSSI -56
])
for report in parse_advertisement_packet(packet):
    print(report.address, report.rssi, report.flags)
```

Each `AdvertisingResponse` carries the address, event type, RSSI, flags,
local name, 16- and 128-bit service UUIDs, manufacturer data, any elements
not otherwise understood, and the raw data. A packet that is not an LE meta
event, or whose framing is broken, raises `HCIParseError`; a report whose
advertising data is corrupt is logged and left out.

`BLEScanner` wraps any `BLEClientTransport`, starts and stops scanning,
turns what the transport delivers into `AdvertisingResponse` objects and,
with `FilterDuplicates.SOFTWARE` (the default), drops repeats of the same
address and event type. Failures surface as `HCIScannerError`. It works as
a context manager:

```python
from blepp.advertising import BLEScanner

with BLEScanner(my_transport) as scanner:
    for rsp in scanner.get_advertisements():
        print(rsp.address)
```

## Transports (`blepp.transport`)

`BLEClientTransport` is an abstract base class for scanning, connecting,
sending and receiving ATT PDUs and managing the MTU. `ScanParams`,
`ClientConnectionParams` and `AdvertisementData` describe what passes
through it; implementations report failures with `TransportError`.

## GATT services and advertising data

```python
from blepp.gatt_services import create_read_only_service
from blepp.adv_data import AdvertisingParams, build_advertising_data
from blepp.uuid import uuid16

service = create_read_only_service(uuid16(0x180A), uuid16(0x2A29), b"Example")
payload = build_advertising_data(
    AdvertisingParams(device_name="sensor", service_uuids=[uuid16(0x180A)])
)
```

`GATTServiceDef` collects `GATTCharacteristicDef` and `GATTDescriptorDef`
entries with `CharacteristicFlags`; access callbacks are called as
`(conn_handle, op, offset, data)` and return 0 or an ATT error code.
`build_advertising_data` emits the flags element, the 16-bit service UUIDs
and the device name (truncated to fit 31 bytes), or returns
`AdvertisingParams.advertising_data` unchanged when it is set.

## Other helpers

- `blepp.pretty_printers` formats bytes and UUIDs as hex or escaped text.
- `blepp.bfloat.bluetooth_float_to_float` decodes the 32-bit Bluetooth
  FLOAT format (24-bit mantissa, 8-bit base-10 exponent).

## What this package does not do

It contains no concrete transport: nothing here opens an HCI device or an
L2CAP socket, so it cannot scan, connect or talk to real hardware by
itself; you supply a `BLEClientTransport` implementation. There is no GATT
client state machine for discovering services on a connected device, and no
GATT server that registers the service definitions or sends the
advertising payload; those objects only describe what a server would
offer. There is no command-line program.

## Running the tests

```
pytest
```