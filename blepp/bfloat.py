"""Decoding of the Bluetooth 32-bit FLOAT type (IEEE 11073)."""

from __future__ import annotations

import math
import struct

__all__ = ["bluetooth_float_to_float"]


def _to_float32(x: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def bluetooth_float_to_float(data: bytes) -> float:
    """Decode a 4-byte Bluetooth FLOAT: 24-bit mantissa, signed 8-bit exponent."""
    if len(data) < 4:
        raise ValueError("a Bluetooth FLOAT needs 4 bytes")
    exponent = int.from_bytes(bytes(data[3:4]), "little", signed=True)
    mantissa = data[0] | (data[1] << 8) | (data[2] << 16)
    if mantissa > 0x080000:
        mantissa = -(0x100000 - mantissa)
    return _to_float32(mantissa * 10.0 ** exponent)