"""Views over ATT protocol PDUs (Core Spec 4.0, Vol 3, Part F, 3.4).

Building a view of the wrong kind from a PDU raises ``PDUTypeError``;
a PDU whose contents are malformed raises ``PDUFormatError``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from blepp.uuid import UUID

__all__ = [
    "AttOpcode",
    "PDUTypeError",
    "PDUFormatError",
    "PDUResponse",
    "PDUErrorResponse",
    "PDUReadResponse",
    "PDUReadByTypeResponse",
    "PDUReadGroupByTypeResponse",
    "PDUFindInformationResponse",
    "PDUNotificationOrIndication",
    "CharacteristicDeclaration",
    "GATTReadCharacteristic",
    "GATTReadCCC",
    "GATTReadServiceGroup",
]

_log = logging.getLogger(__name__)


class AttOpcode(enum.IntEnum):
    """ATT protocol opcodes."""

    ERROR = 0x01
    MTU_REQ = 0x02
    MTU_RESP = 0x03
    FIND_INFO_REQ = 0x04
    FIND_INFO_RESP = 0x05
    FIND_BY_TYPE_REQ = 0x06
    FIND_BY_TYPE_RESP = 0x07
    READ_BY_TYPE_REQ = 0x08
    READ_BY_TYPE_RESP = 0x09
    READ_REQ = 0x0A
    READ_RESP = 0x0B
    READ_BLOB_REQ = 0x0C
    READ_BLOB_RESP = 0x0D
    READ_MULTI_REQ = 0x0E
    READ_MULTI_RESP = 0x0F
    READ_BY_GROUP_REQ = 0x10
    READ_BY_GROUP_RESP = 0x11
    WRITE_REQ = 0x12
    WRITE_RESP = 0x13
    PREP_WRITE_REQ = 0x16
    PREP_WRITE_RESP = 0x17
    EXEC_WRITE_REQ = 0x18
    EXEC_WRITE_RESP = 0x19
    HANDLE_NOTIFY = 0x1B
    HANDLE_IND = 0x1D
    HANDLE_CNF = 0x1E
    WRITE_CMD = 0x52
    SIGNED_WRITE_CMD = 0xD2


class PDUTypeError(TypeError):
    """A PDU was interpreted as a kind it is not."""


class PDUFormatError(ValueError):
    """A PDU's contents are malformed."""


def _op_name(op: int) -> str:
    try:
        return AttOpcode(op).name
    except ValueError:
        return f"unknown opcode 0x{op:02x}"


class PDUResponse:
    """A received ATT PDU (3.3.1): opcode byte followed by parameters."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        self.data = bytes(pdu.data if isinstance(pdu, PDUResponse) else pdu)

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data!r})"

    @staticmethod
    def _fail(exc_type: type[Exception], message: str) -> None:
        _log.error("%s", message)
        raise exc_type(message)

    def _type_check(self, target: int) -> None:
        if self.type() != target:
            self._fail(
                PDUTypeError,
                f"Error converting PDUResponse to {_op_name(target)}. "
                f"Type is {_op_name(self.type())}",
            )

    def uint8(self, i: int) -> int:
        """The byte at offset ``i``."""
        if not 0 <= i < len(self.data):
            raise IndexError(f"offset {i} outside PDU of length {len(self.data)}")
        return self.data[i]

    def uint16(self, i: int) -> int:
        """The little-endian 16-bit value at offset ``i``."""
        return self.uint8(i) | (self.uint8(i + 1) << 8)

    def type(self) -> int:
        """The method type: the low 6 bits of the opcode."""
        return self.uint8(0) & 0x3F

    def is_command(self) -> bool:
        return bool(self.uint8(0) & 0x40)

    def is_authenticated(self) -> bool:
        return bool(self.uint8(0) & 0x80)


class PDUErrorResponse(PDUResponse):
    """Error response (3.4.1.1)."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        self._type_check(AttOpcode.ERROR)

    def request_opcode(self) -> int:
        return self.uint8(1)

    def handle(self) -> int:
        return self.uint16(2)

    def error_code(self) -> int:
        return self.uint8(4)


class PDUReadResponse(PDUResponse):
    """Response to a read request (3.4.4.4)."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        self._type_check(AttOpcode.READ_RESP)

    def request_opcode(self) -> int:
        return self.uint8(1)

    def num_elements(self) -> int:
        return len(self.data) - 1

    def value(self) -> bytes:
        return self.data[1:]


class PDUReadByTypeResponse(PDUResponse):
    """Response to a read-by-type request (3.4.4.2)."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        self._type_check(AttOpcode.READ_BY_TYPE_RESP)
        size = self.element_size()
        if size == 0 or (len(self.data) - 2) % size != 0:
            self._fail(PDUFormatError, "Invalid packet length for PDUReadByTypeResponse")

    def element_size(self) -> int:
        """Size of each handle-value pair."""
        return self.uint8(1)

    def value_size(self) -> int:
        """Size of just the value in each pair."""
        return self.uint8(1) - 2

    def num_elements(self) -> int:
        return (len(self.data) - 1) // self.element_size()

    def handle(self, i: int) -> int:
        return self.uint16(i * self.element_size() + 2)

    def value(self, i: int) -> bytes:
        begin = i * self.element_size() + 4
        return self.data[begin:begin + self.value_size()]

    def value_uint16(self, i: int) -> int:
        if self.value_size() != 2:
            self._fail(PDUTypeError, "Wrong size for uint16 in PDUReadByTypeResponse")
        return self.uint16(i * self.element_size() + 4)


class PDUReadGroupByTypeResponse(PDUResponse):
    """Response to a read-by-group-type request (3.4.4.10)."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        self._type_check(AttOpcode.READ_BY_GROUP_RESP)
        size = self.element_size()
        if size == 0 or (len(self.data) - 2) % size != 0:
            self._fail(PDUFormatError, "Invalid packet length for PDUReadGroupByTypeResponse")

    def element_size(self) -> int:
        return self.uint8(1)

    def value_size(self) -> int:
        return self.uint8(1) - 4

    def num_elements(self) -> int:
        return (len(self.data) - 2) // self.element_size()

    def start_handle(self, i: int) -> int:
        return self.uint16(i * self.element_size() + 2)

    def end_handle(self, i: int) -> int:
        return self.uint16(i * self.element_size() + 4)

    def value(self, i: int) -> bytes:
        begin = i * self.element_size() + 6
        return self.data[begin:begin + self.value_size()]

    def value_uint16(self, i: int) -> int:
        if self.value_size() != 2:
            self._fail(PDUTypeError, "Wrong size for uint16 in PDUReadGroupByTypeResponse")
        return self.uint16(i * self.element_size() + 4)


class PDUFindInformationResponse(PDUResponse):
    """Response to a find-information request (3.4.3.2)."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        self._type_check(AttOpcode.FIND_INFO_RESP)
        if (len(self.data) - 2) % self.element_size():
            self._fail(PDUFormatError, "Invalid packet length for PDUFindInformationResponse")

    def is_16_bit(self) -> bool:
        return self.uint8(1) == 1

    def element_size(self) -> int:
        return 2 + (2 if self.is_16_bit() else 16)

    def num_elements(self) -> int:
        return (len(self.data) - 2) // self.element_size()

    def handle(self, i: int) -> int:
        return self.uint16(2 + i * self.element_size())

    def uuid(self, i: int) -> UUID:
        begin = 4 + i * self.element_size()
        width = 2 if self.is_16_bit() else 16
        chunk = self.data[begin:begin + width]
        if len(chunk) != width:
            raise IndexError(f"element {i} outside PDU")
        return UUID.from_le_bytes(chunk)


class PDUNotificationOrIndication(PDUResponse):
    """A handle-value notification or indication (3.4.7)."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        if self.type() not in (AttOpcode.HANDLE_NOTIFY, AttOpcode.HANDLE_IND):
            self._fail(
                PDUTypeError,
                "Error converting PDUResponse to NotifyOrIndicate. "
                f"Type is {_op_name(self.type())}",
            )

    def notification(self) -> bool:
        return self.type() == AttOpcode.HANDLE_NOTIFY

    def num_elements(self) -> int:
        return len(self.data) - 2

    def handle(self) -> int:
        return self.uint16(1)

    def value(self) -> bytes:
        return self.data[3:]


@dataclass(frozen=True)
class CharacteristicDeclaration:
    """One characteristic declaration: value handle, property flags, UUID."""

    handle: int
    flags: int
    uuid: UUID


class GATTReadCharacteristic(PDUReadByTypeResponse):
    """A read-by-type response holding characteristic declarations."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        if self.value_size() not in (5, 19):
            raise PDUFormatError("Invalid packet size in GATTReadCharacteristic")

    def characteristic(self, i: int) -> CharacteristicDeclaration:
        v = self.value(i)
        if len(v) != self.value_size():
            raise IndexError(f"element {i} outside PDU")
        return CharacteristicDeclaration(
            handle=int.from_bytes(v[1:3], "little"),
            flags=v[0],
            uuid=UUID.from_le_bytes(v[3:]),
        )


class GATTReadCCC(PDUReadByTypeResponse):
    """A read-by-type response holding client characteristic configurations."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        if self.value_size() != 2:
            raise PDUFormatError("Invalid packet size in GATTReadCharacteristic")

    def ccc(self, i: int) -> int:
        v = self.value(i)
        if len(v) != 2:
            raise IndexError(f"element {i} outside PDU")
        return int.from_bytes(v, "little")


class GATTReadServiceGroup(PDUReadGroupByTypeResponse):
    """A read-by-group-type response holding primary services."""

    def __init__(self, pdu: bytes | PDUResponse) -> None:
        super().__init__(pdu)
        if self.value_size() not in (2, 16):
            _log.error("UUID length %d", self.value_size())
            self._fail(PDUFormatError, "Invalid UUID length in PDUReadGroupByTypeResponse")

    def uuid(self, i: int) -> UUID:
        v = self.value(i)
        if len(v) != self.value_size():
            raise IndexError(f"element {i} outside PDU")
        return UUID.from_le_bytes(v)