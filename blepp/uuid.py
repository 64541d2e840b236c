"""Bluetooth UUIDs in their 16-, 32- and 128-bit forms."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

__all__ = ["UUIDType", "UUID", "uuid16", "uuid32", "uuid128"]

# Bluetooth base UUID 00000000-0000-1000-8000-00805F9B34FB, little endian,
# as it travels over the air (Core 4.0, Part B, 2.5.1).
_BASE_UUID = bytes(
    [
        0xFB, 0x34, 0x9B, 0x5F, 0x80, 0x00, 0x00, 0x80,
        0x00, 0x10, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    ]
)
_BASE_UUID_OFFSET = 12

_SHORT_NUMBER = re.compile(r"\s*[+-]?(?:0[xX])?[0-9a-fA-F]+")
_LONG_FORM = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


class UUIDType(enum.IntEnum):
    """Width of a UUID."""

    UNSPEC = 0
    UUID16 = 16
    UUID32 = 32
    UUID128 = 128


@dataclass(frozen=True, eq=False)
class UUID:
    """A Bluetooth UUID.

    ``value`` is an int for 16- and 32-bit UUIDs and the 16 little-endian
    bytes for 128-bit UUIDs.
    """

    type: UUIDType
    value: int | bytes = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", UUIDType(self.type))
        if self.type is UUIDType.UUID128:
            data = bytes(self.value) if not isinstance(self.value, int) else None
            if data is None or len(data) != 16:
                raise ValueError("a 128-bit UUID needs exactly 16 bytes")
            object.__setattr__(self, "value", data)
        elif self.type is UUIDType.UUID16:
            self._check_int(0xFFFF)
        elif self.type is UUIDType.UUID32:
            self._check_int(0xFFFFFFFF)

    def _check_int(self, limit: int) -> None:
        if not isinstance(self.value, int) or not 0 <= self.value <= limit:
            raise ValueError(f"UUID value {self.value!r} out of range for {self.type.name}")

    @classmethod
    def parse(cls, text: str) -> UUID:
        """Parse a UUID from its textual form; raise ValueError if invalid."""
        if len(text) == 36 and all(text[i] == "-" for i in (8, 13, 18, 23)):
            if not _LONG_FORM.fullmatch(text):
                raise ValueError(f"invalid 128-bit UUID string: {text!r}")
            return cls(UUIDType.UUID128, bytes.fromhex(text.replace("-", ""))[::-1])
        if len(text) in (8, 10):
            return cls(UUIDType.UUID32, _parse_number(text) & 0xFFFFFFFF)
        if len(text) in (4, 6):
            return cls(UUIDType.UUID16, _parse_number(text) & 0xFFFF)
        raise ValueError(f"invalid UUID string: {text!r}")

    @classmethod
    def from_le_bytes(cls, data: bytes) -> UUID:
        """Build a UUID from its little-endian wire form (2, 4 or 16 bytes)."""
        data = bytes(data)
        if len(data) == 2:
            return cls(UUIDType.UUID16, int.from_bytes(data, "little"))
        if len(data) == 4:
            return cls(UUIDType.UUID32, int.from_bytes(data, "little"))
        if len(data) == 16:
            return cls(UUIDType.UUID128, data)
        raise ValueError(f"UUID wire form must be 2, 4 or 16 bytes, not {len(data)}")

    def to_uuid128(self) -> UUID:
        """Return the full 128-bit form of this UUID."""
        if self.type is UUIDType.UUID128:
            return self
        if self.type is UUIDType.UNSPEC:
            raise ValueError("an unspecified UUID has no 128-bit form")
        full = bytearray(_BASE_UUID)
        full[_BASE_UUID_OFFSET:] = int(self.value).to_bytes(4, "little")
        return UUID(UUIDType.UUID128, bytes(full))

    def le_bytes(self) -> bytes:
        """Return the little-endian wire form at this UUID's own width."""
        if self.type is UUIDType.UUID16:
            return int(self.value).to_bytes(2, "little")
        if self.type is UUIDType.UUID32:
            return int(self.value).to_bytes(4, "little")
        if self.type is UUIDType.UUID128:
            return bytes(self.value)
        raise ValueError("an unspecified UUID has no wire form")

    def __str__(self) -> str:
        if self.type is UUIDType.UUID16:
            return f"{self.value:04x}"
        if self.type is UUIDType.UUID32:
            return f"{self.value:08x}"
        if self.type is UUIDType.UUID128:
            h = bytes(self.value)[::-1].hex()
            return f"{h[:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:]}"
        return f"Type of UUID ({int(self.type):x}) unknown."

    def _key(self) -> tuple:
        if self.type is UUIDType.UNSPEC:
            return (UUIDType.UNSPEC, self.value)
        return (UUIDType.UUID128, self.to_uuid128().value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UUID):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())


def _parse_number(text: str) -> int:
    if not _SHORT_NUMBER.fullmatch(text):
        raise ValueError(f"invalid UUID string: {text!r}")
    return int(text.strip(), 16)


def uuid16(value: int) -> UUID:
    """Create a 16-bit UUID."""
    return UUID(UUIDType.UUID16, value)


def uuid32(value: int) -> UUID:
    """Create a 32-bit UUID."""
    return UUID(UUIDType.UUID32, value)


def uuid128(data: bytes) -> UUID:
    """Create a 128-bit UUID from 16 little-endian bytes."""
    return UUID(UUIDType.UUID128, bytes(data))