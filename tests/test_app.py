import pytest

from signvault.ledger.apdu import APDUError, APDUResponse
from signvault.ledger.app import App, DeviceInfo, Exchanger, Version


class _FakeExchanger(Exchanger):
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []
        self.closed = False

    def exchange(self, req):
        self.requests.append(req.to_bytes())
        return self.replies.pop(0)

    def close(self):
        self.closed = True


def _version_payload(name: bytes, version: bytes, flags: bytes) -> bytes:
    return (
        b"\x01"
        + bytes([len(name)]) + name
        + bytes([len(version)]) + version
        + bytes([len(flags)]) + flags
    )


def test_get_app_version():
    ex = _FakeExchanger([APDUResponse(_version_payload(b"BOLOS", b"1.6.0", b"\x02\x00"), 0x9000)])
    ver = App(ex).get_app_version()
    assert ver == Version(name="BOLOS", version="1.6.0", flags=0x200)
    assert ex.requests == [b"\xb0\x01\x00\x00"]


def test_version_str():
    assert str(Version("Tezos", "2.1", 0)) == "Tezos 2.1 / 0x0"


def test_get_app_version_bad_status():
    ex = _FakeExchanger([APDUResponse(b"", 0x6E00)])
    with pytest.raises(APDUError) as exc:
        App(ex).get_app_version()
    assert exc.value.sw == 0x6E00


def test_get_app_version_bad_format():
    ex = _FakeExchanger([APDUResponse(b"\x02\x00\x00\x00", 0x9000)])
    with pytest.raises(ValueError, match="invalid version info format: 2"):
        App(ex).get_app_version()


def test_get_app_version_truncated():
    ex = _FakeExchanger([APDUResponse(b"\x01\x05BOL", 0x9000)])
    with pytest.raises(ValueError, match="unexpected end of the message"):
        App(ex).get_app_version()


def test_quit_app():
    ex = _FakeExchanger([APDUResponse(b"", 0x9000)])
    App(ex).quit_app()
    assert ex.requests == [b"\xb0\xa7\x00\x00"]


def test_quit_app_error():
    ex = _FakeExchanger([APDUResponse(b"", 0x6985)])
    with pytest.raises(APDUError):
        App(ex).quit_app()


def test_context_manager_closes():
    ex = _FakeExchanger([])
    with App(ex) as app:
        assert app.exchanger is ex
    assert ex.closed is True


def test_device_info_default():
    assert DeviceInfo(path="/dev/x").device_info is None