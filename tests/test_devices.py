import uuid

from signvault.ledger.devices import LEDGER_DEVICES, find_device_info


def test_find_by_mm_nano_s():
    info = find_device_info(0x1011)
    assert info.id == "nanoS"
    assert info.product_name == "Ledger Nano S"


def test_find_by_mm_nano_x():
    info = find_device_info(0x4011)
    assert info.id == "nanoX"
    assert info.usb_only is False


def test_find_legacy_product_id():
    assert find_device_info(0x0000).id == "blue"


def test_find_unknown():
    assert find_device_info(0x2000) is None


def test_nano_x_bluetooth():
    nano_x = find_device_info(0x4000)
    assert nano_x.id == "nanoX"
    assert nano_x.bluetooth_spec[0].service_uuid == uuid.UUID(
        "13d63400-2c97-0004-0000-4c6564676572"
    )
    assert not find_device_info(0x1000).bluetooth_spec


def test_device_ids_unique():
    found = [find_device_info(pid).id for pid in (0x0011, 0x1011, 0x4011)]
    assert found == ["blue", "nanoS", "nanoX"]
    assert sorted(found) == sorted(d.id for d in LEDGER_DEVICES)