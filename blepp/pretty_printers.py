"""Human-readable renderings of bytes and UUIDs."""

from __future__ import annotations

from blepp.uuid import UUID, UUIDType

__all__ = [
    "to_hex_u8",
    "to_hex_u16",
    "to_hex_bytes",
    "to_str_byte",
    "to_str_bytes",
    "uuid_to_str",
]


def to_hex_u8(value: int) -> str:
    """Two lower-case hex digits."""
    return f"{value & 0xFF:02x}"


def to_hex_u16(value: int) -> str:
    """Four lower-case hex digits."""
    return f"{value & 0xFFFF:04x}"


def to_hex_bytes(data: bytes) -> str:
    """Each byte as two hex digits followed by a space."""
    return "".join(f"{to_hex_u8(b)} " for b in data)


def to_str_byte(value: int) -> str:
    """A printable ASCII byte as itself, anything else as a \\x escape."""
    if value < 32 or value > 126:
        return "\\x" + to_hex_u8(value)
    return chr(value)


def to_str_bytes(data: bytes) -> str:
    """Bytes as text with non-printable bytes escaped."""
    return "".join(to_str_byte(b) for b in data)


def uuid_to_str(uuid: UUID) -> str:
    """A 16-bit UUID as four hex digits, a 128-bit one in its long form."""
    if uuid.type is UUIDType.UUID16:
        return to_hex_u16(int(uuid.value))
    if uuid.type is UUIDType.UUID128:
        return str(uuid)
    return "uuid.wtf"