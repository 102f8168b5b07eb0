import pytest

from signvault.ledger.apdu import (
    APDU_STATUS_OK,
    APDUCommand,
    APDUError,
    APDUResponse,
    parse_apdu_response,
)


def test_bytes_without_data():
    assert APDUCommand(cla=0xB0, ins=0x01).to_bytes() == b"\xb0\x01\x00\x00"


def test_bytes_force_lc():
    cmd = APDUCommand(cla=0x80, ins=0x00, force_lc=True)
    assert cmd.to_bytes() == b"\x80\x00\x00\x00\x00"


def test_bytes_with_data():
    cmd = APDUCommand(cla=0x80, ins=0x02, p1=0x01, p2=0x03, data=b"abc")
    assert cmd.to_bytes() == b"\x80\x02\x01\x03\x03abc"


def test_raw_overrides():
    cmd = APDUCommand(cla=0x80, ins=0x02, data=b"abc", raw=b"\x01\x02")
    assert cmd.to_bytes() == b"\x01\x02"


def test_parse_response():
    res = parse_apdu_response(b"hello\x90\x00")
    assert res == APDUResponse(data=b"hello", sw=APDU_STATUS_OK)


def test_parse_response_status_only():
    res = parse_apdu_response(b"\x69\x85")
    assert res.data == b""
    assert res.sw == 0x6985


def test_parse_response_too_short():
    with pytest.raises(ValueError, match="error parsing APDU response"):
        parse_apdu_response(b"\x90")


def test_apdu_error():
    err = APDUError(0x6985)
    assert err.sw == 0x6985
    assert str(err) == "ledger: APDU 0x6985"