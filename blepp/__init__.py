"""Bluetooth LE toolkit: UUIDs, ATT PDU views, advertisement parsing, GATT definitions."""

__version__ = "1.2.0"

__all__ = [
    "uuid",
    "pretty_printers",
    "bfloat",
    "att_pdu",
    "transport",
    "advertising",
    "gatt_services",
    "adv_data",
]