"""The client transport interface: scanning, connecting and moving ATT PDUs."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import Callable, Optional

__all__ = [
    "ScanType",
    "FilterPolicy",
    "ScanParams",
    "AdvertisementData",
    "ClientConnectionParams",
    "TransportError",
    "BLEClientTransport",
]

_U8_MAX = 0xFF
_U16_MAX = 0xFFFF


def _check_range(name: str, value: int, limit: int) -> None:
    if not 0 <= value <= limit:
        raise ValueError(f"{name} must be between 0 and {limit}, not {value}")


class ScanType(enum.IntEnum):
    """Whether scanning sends scan requests."""

    PASSIVE = 0x00
    ACTIVE = 0x01


class FilterPolicy(enum.IntEnum):
    """Which advertising packets the controller accepts."""

    ALL = 0x00
    WHITELIST_ONLY = 0x01


@dataclass
class ScanParams:
    """Parameters for discovering devices.

    The default interval and window give a 2% duty cycle, which leaves
    room for a WiFi radio sharing the antenna.
    """

    scan_type: ScanType = ScanType.ACTIVE
    interval_ms: int = 1280
    window_ms: int = 26
    filter_policy: FilterPolicy = FilterPolicy.ALL
    filter_duplicates: bool = True

    def __post_init__(self) -> None:
        self.scan_type = ScanType(self.scan_type)
        self.filter_policy = FilterPolicy(self.filter_policy)
        _check_range("interval_ms", self.interval_ms, _U16_MAX)
        _check_range("window_ms", self.window_ms, _U16_MAX)


@dataclass
class AdvertisementData:
    """One advertisement as delivered by a transport."""

    address: str
    address_type: int = 0
    rssi: int = 0
    event_type: int = 0
    data: bytes = b""

    def __post_init__(self) -> None:
        _check_range("address_type", self.address_type, _U8_MAX)
        _check_range("event_type", self.event_type, _U8_MAX)
        if not -128 <= self.rssi <= 127:
            raise ValueError(f"rssi must fit in a signed byte, not {self.rssi}")
        self.data = bytes(self.data)


@dataclass
class ClientConnectionParams:
    """Parameters for connecting to a peripheral.

    Intervals are in units of 1.25 ms and the supervision timeout in
    units of 10 ms.
    """

    peer_address: str
    peer_address_type: int = 0
    min_interval: int = 24
    max_interval: int = 40
    latency: int = 0
    timeout: int = 400

    def __post_init__(self) -> None:
        _check_range("peer_address_type", self.peer_address_type, _U8_MAX)
        _check_range("min_interval", self.min_interval, _U16_MAX)
        _check_range("max_interval", self.max_interval, _U16_MAX)
        _check_range("latency", self.latency, _U16_MAX)
        _check_range("timeout", self.timeout, _U16_MAX)


class TransportError(RuntimeError):
    """A transport operation failed."""


class BLEClientTransport(abc.ABC):
    """A backend that can scan for, connect to and talk with BLE devices.

    Operations that fail raise ``TransportError``. The optional callbacks
    are called by implementations that deliver events asynchronously.
    """

    def __init__(self) -> None:
        self.on_advertisement: Optional[Callable[[AdvertisementData], None]] = None
        self.on_connected: Optional[Callable[[int], None]] = None
        self.on_disconnected: Optional[Callable[[int], None]] = None
        self.on_data_received: Optional[Callable[[int, bytes], None]] = None

    # Scanning

    @abc.abstractmethod
    def start_scan(self, params: ScanParams) -> None:
        """Start scanning for devices."""

    @abc.abstractmethod
    def stop_scan(self) -> None:
        """Stop scanning."""

    @abc.abstractmethod
    def get_advertisements(self, timeout_ms: int = 0) -> list[AdvertisementData]:
        """Return advertisements received so far.

        A timeout of 0 does not block; -1 blocks until something arrives.
        """

    # Connections

    @abc.abstractmethod
    def connect(self, params: ClientConnectionParams) -> int:
        """Connect to a device and return a handle for the connection."""

    @abc.abstractmethod
    def disconnect(self, fd: int) -> None:
        """Close the connection with the given handle."""

    @abc.abstractmethod
    def get_fd(self, fd: int) -> int:
        """A file descriptor for select/poll on a connection, or -1."""

    # Data transfer

    @abc.abstractmethod
    def send(self, fd: int, data: bytes) -> int:
        """Send an ATT PDU and return the number of bytes sent."""

    @abc.abstractmethod
    def receive(self, fd: int, max_len: int) -> bytes:
        """Receive at most ``max_len`` bytes of one ATT PDU; empty if none."""

    # MTU

    @abc.abstractmethod
    def get_mtu(self, fd: int) -> int:
        """The current ATT MTU of a connection."""

    @abc.abstractmethod
    def set_mtu(self, fd: int, mtu: int) -> None:
        """Change the ATT MTU of a connection."""

    # Information

    @abc.abstractmethod
    def transport_name(self) -> str:
        """A short name for this transport."""

    @abc.abstractmethod
    def is_available(self) -> bool:
        """Whether this transport can be used on this system."""

    @abc.abstractmethod
    def mac_address(self) -> str:
        """The local address as "XX:XX:XX:XX:XX:XX", or "" if unknown."""