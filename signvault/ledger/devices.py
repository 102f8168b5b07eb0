"""Known Ledger device models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


@dataclass(frozen=True)
class BluetoothSpec:
    """BLE service identifiers of a device."""

    service_uuid: uuid.UUID
    notify_uuid: uuid.UUID
    write_uuid: uuid.UUID


@dataclass(frozen=True)
class LedgerDeviceInfo:
    """Hard-coded information about a device model, picked by product ID."""

    id: str
    product_name: str
    product_id_mm: int
    legacy_usb_product_id: int
    usb_only: bool
    memory_size: int
    block_size: int
    bluetooth_spec: tuple[BluetoothSpec, ...] = field(default_factory=tuple)


LEDGER_DEVICES: tuple[LedgerDeviceInfo, ...] = (
    LedgerDeviceInfo(
        id="blue",
        product_name="Ledger Blue",
        product_id_mm=0x00,
        legacy_usb_product_id=0x0000,
        usb_only=True,
        memory_size=480 * 1024,
        block_size=4 * 1024,
    ),
    LedgerDeviceInfo(
        id="nanoS",
        product_name="Ledger Nano S",
        product_id_mm=0x10,
        legacy_usb_product_id=0x0001,
        usb_only=True,
        memory_size=320 * 1024,
        block_size=4 * 1024,
    ),
    LedgerDeviceInfo(
        id="nanoX",
        product_name="Ledger Nano X",
        product_id_mm=0x40,
        legacy_usb_product_id=0x0004,
        usb_only=False,
        memory_size=2 * 1024 * 1024,
        block_size=4 * 1024,
        bluetooth_spec=(
            BluetoothSpec(
                service_uuid=uuid.UUID("13d63400-2c97-0004-0000-4c6564676572"),
                notify_uuid=uuid.UUID("13d63400-2c97-0004-0001-4c6564676572"),
                write_uuid=uuid.UUID("13d63400-2c97-0004-0002-4c6564676572"),
            ),
        ),
    ),
)


def find_device_info(product_id: int) -> LedgerDeviceInfo | None:
    """Return the first model matching a USB product ID, or None."""
    mm = (product_id >> 8) & 0xFF
    return next(
        (
            info
            for info in LEDGER_DEVICES
            if info.legacy_usb_product_id == product_id or info.product_id_mm == mm
        ),
        None,
    )