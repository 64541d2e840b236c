"""Building the advertising payload a peripheral broadcasts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from blepp.uuid import UUID, UUIDType

__all__ = ["AdvertisingParams", "build_advertising_data"]

_log = logging.getLogger(__name__)

_MAX_ADV_DATA = 31
_NAME_LIMIT = 29  # leaves room for the name element's length and type bytes

_AD_FLAGS = 0x01
_AD_COMPLETE_16_BIT_UUIDS = 0x03
_AD_COMPLETE_LOCAL_NAME = 0x09
_FLAGS_LE_GENERAL_NO_BREDR = 0x06


@dataclass
class AdvertisingParams:
    """What to advertise and how often.

    A non-empty ``advertising_data`` is sent as is instead of the payload
    built from the name and service UUIDs.
    """

    device_name: str = ""
    service_uuids: list[UUID] = field(default_factory=list)
    min_interval_ms: int = 100
    max_interval_ms: int = 200
    advertising_data: bytes = b""
    scan_response_data: bytes = b""

    def __post_init__(self) -> None:
        self.advertising_data = bytes(self.advertising_data)
        self.scan_response_data = bytes(self.scan_response_data)
        for name in ("advertising_data", "scan_response_data"):
            if len(getattr(self, name)) > _MAX_ADV_DATA:
                raise ValueError(f"{name} is limited to {_MAX_ADV_DATA} bytes")
        if self.min_interval_ms < 0 or self.max_interval_ms < self.min_interval_ms:
            raise ValueError("advertising interval range is invalid")


def build_advertising_data(params: AdvertisingParams) -> bytes:
    """Return the advertising payload: flags, 16-bit service UUIDs, name.

    The name is truncated to fit; a payload that cannot fit at all
    raises ValueError.
    """
    if params.advertising_data:
        return params.advertising_data

    out = bytearray([2, _AD_FLAGS, _FLAGS_LE_GENERAL_NO_BREDR])

    if params.service_uuids:
        short = [u for u in params.service_uuids if u.type is UUIDType.UUID16]
        out += bytes([1 + 2 * len(short), _AD_COMPLETE_16_BIT_UUIDS])
        for u in short:
            out += u.le_bytes()

    if params.device_name:
        if len(out) > _NAME_LIMIT:
            raise ValueError("no room left for the device name")
        name = params.device_name.encode("utf-8")[: _NAME_LIMIT - len(out)]
        out += bytes([1 + len(name), _AD_COMPLETE_LOCAL_NAME]) + name

    if len(out) > _MAX_ADV_DATA:
        raise ValueError(f"advertising data exceeds {_MAX_ADV_DATA} bytes")
    _log.debug("Built advertising data: %d bytes", len(out))
    return bytes(out)