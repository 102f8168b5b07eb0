import pytest

from signvault.ledger.apdu import APDUCommand, APDUError
from signvault.ledger.usbhid import (
    CHUNK_SIZE,
    CMD_APDU,
    CMD_PING,
    PACKET_SIZE,
    HIDRoundTripper,
    Packet,
    decode_packet,
    encode_packet,
)


class _FakeDevice:
    def __init__(self, reads=()):
        self.reads = list(reads)
        self.writes = []
        self.closed = False

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)

    def read(self, size):
        return self.reads.pop(0)

    def close(self):
        self.closed = True


def _apdu_reply(channel, payload):
    buf = len(payload).to_bytes(2, "big") + payload
    return [
        encode_packet(Packet(channel, CMD_APDU, seq, buf[off:off + CHUNK_SIZE]))
        for seq, off in enumerate(range(0, len(buf), CHUNK_SIZE))
    ]


def test_encode_packet_header():
    frame = encode_packet(Packet(channel=0x0101, cmd=CMD_APDU, seq=0, data=b"\x00\x01"))
    assert frame[:7] == b"\x01\x01\x05\x00\x00\x00\x01"
    assert len(frame) == PACKET_SIZE


def test_packet_round_trip():
    pkt = Packet(channel=0xBEEF, cmd=CMD_APDU, seq=3, data=b"payload")
    decoded = decode_packet(encode_packet(pkt))
    assert (decoded.channel, decoded.cmd, decoded.seq) == (0xBEEF, CMD_APDU, 3)
    assert decoded.data.startswith(b"payload")
    assert len(decoded.data) == CHUNK_SIZE


def test_decode_short_packet():
    with pytest.raises(ValueError, match="packet is too short: 3"):
        decode_packet(b"\x00\x01\x05")


def test_exchange_single_packet():
    dev = _FakeDevice(_apdu_reply(0x0101, b"ok\x90\x00"))
    rt = HIDRoundTripper(dev, 0x0101)
    res = rt.exchange(APDUCommand(cla=0xB0, ins=0x01))
    assert res.data == b"ok"
    assert res.sw == 0x9000
    assert dev.writes[0][:11] == b"\x01\x01\x05\x00\x00\x00\x04\xb0\x01\x00\x00"


def test_exchange_multi_packet_request_and_reply():
    payload = bytes(range(100)) + b"\x90\x00"
    dev = _FakeDevice(_apdu_reply(7, payload))
    rt = HIDRoundTripper(dev, 7)
    req = APDUCommand(cla=0x80, ins=0x04, data=bytes(range(200)))
    res = rt.exchange(req)
    assert res.data == bytes(range(100))
    assert [decode_packet(w).seq for w in dev.writes] == list(range(len(dev.writes)))
    written = b"".join(decode_packet(w).data for w in dev.writes)
    raw = req.to_bytes()
    assert written[2:2 + len(raw)] == raw
    assert int.from_bytes(written[:2], "big") == len(raw)


def test_exchange_wrong_channel():
    dev = _FakeDevice(_apdu_reply(9, b"\x90\x00"))
    rt = HIDRoundTripper(dev, 8)
    with pytest.raises(ValueError, match="invalid channel in reply: 9"):
        rt.exchange(APDUCommand(cla=0xB0, ins=0x01))


def test_exchange_bad_sequence():
    frames = _apdu_reply(1, bytes(80) + b"\x90\x00")
    frames[1] = encode_packet(Packet(1, CMD_APDU, 5, decode_packet(frames[1]).data))
    rt = HIDRoundTripper(_FakeDevice(frames), 1)
    with pytest.raises(ValueError, match="invalid packet index: 5"):
        rt.exchange(APDUCommand(cla=0xB0, ins=0x01))


def test_ping_ok():
    dev = _FakeDevice([encode_packet(Packet(3, CMD_PING, 0))])
    rt = HIDRoundTripper(dev, 3)
    assert rt.ping() is None
    assert decode_packet(dev.writes[0]).cmd == CMD_PING


def test_ping_wrong_channel():
    dev = _FakeDevice([encode_packet(Packet(4, CMD_PING, 0))])
    with pytest.raises(ValueError, match="invalid channel in reply: 4"):
        HIDRoundTripper(dev, 3).ping()


def test_ping_apdu_reply_raises():
    dev = _FakeDevice(_apdu_reply(3, b"\x6e\x00"))
    with pytest.raises(APDUError) as exc:
        HIDRoundTripper(dev, 3).ping()
    assert exc.value.sw == 0x6E00


def test_random_channel_in_range_and_close():
    dev = _FakeDevice()
    rt = HIDRoundTripper(dev)
    assert 0 <= rt.channel < 0x10000
    rt.close()
    assert dev.closed is True