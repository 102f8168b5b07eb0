"""USB HID framing of Ledger APDU exchanges."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any

from signvault.ledger.apdu import APDUCommand, APDUError, APDUResponse, parse_apdu_response
from signvault.ledger.app import Exchanger

LEDGER_USB_VENDOR_ID = 0x2C97
LEDGER_USAGE_PAGE = 0xFFA0
HEADER_SIZE = 5
PACKET_SIZE = 64
CHUNK_SIZE = PACKET_SIZE - HEADER_SIZE

CMD_PING = 2
CMD_APDU = 5


@dataclass
class Packet:
    """A single HID report."""

    channel: int
    cmd: int
    seq: int
    data: bytes = b""


def encode_packet(packet: Packet) -> bytes:
    """Pack a report into a zero-padded 64-byte frame."""
    header = (
        packet.channel.to_bytes(2, "big")
        + bytes([packet.cmd])
        + packet.seq.to_bytes(2, "big")
    )
    return (header + packet.data[:CHUNK_SIZE]).ljust(PACKET_SIZE, b"\x00")


def decode_packet(data: bytes) -> Packet:
    """Unpack a frame read from the device."""
    data = bytes(data[:PACKET_SIZE])
    if len(data) < HEADER_SIZE:
        raise ValueError(f"ledger: packet is too short: {len(data)}")
    return Packet(
        channel=int.from_bytes(data[0:2], "big"),
        cmd=data[2],
        seq=int.from_bytes(data[3:5], "big"),
        data=data[HEADER_SIZE:].ljust(CHUNK_SIZE, b"\x00"),
    )


class HIDRoundTripper(Exchanger):
    """Exchanges APDUs with a HID device.

    ``dev`` provides ``write(bytes)``, ``read(size) -> bytes`` and ``close()``.
    Without a channel a random one is chosen.
    """

    def __init__(self, dev: Any, channel: int | None = None) -> None:
        self.dev = dev
        self.channel = secrets.randbelow(0x10000) if channel is None else channel

    def _write_packet(self, packet: Packet) -> None:
        try:
            self.dev.write(encode_packet(packet))
        except OSError as e:
            raise OSError(f"ledger: {e}") from e

    def _read_packet(self) -> Packet:
        try:
            raw = self.dev.read(PACKET_SIZE)
        except OSError as e:
            raise OSError(f"ledger: {e}") from e
        return decode_packet(raw)

    def _write_command(self, cmd: int, data: bytes = b"") -> None:
        if cmd != CMD_APDU:
            self._write_packet(Packet(self.channel, cmd, 0))
            return
        buf = len(data).to_bytes(2, "big") + data
        for seq, off in enumerate(range(0, len(buf), CHUNK_SIZE)):
            self._write_packet(Packet(self.channel, cmd, seq, buf[off:off + CHUNK_SIZE]))

    def _read_command(self) -> tuple[int, int, bytes]:
        data = bytearray()
        data_len = 0
        channel = cmd = 0
        idx = 0
        while True:
            pkt = self._read_packet()
            payload = pkt.data
            if idx == 0:
                cmd = pkt.cmd
                channel = pkt.channel
                if cmd == CMD_APDU:
                    if len(payload) < 2:
                        raise ValueError(f"ledger: packet is too short: {len(payload)}")
                    data_len = int.from_bytes(payload[:2], "big")
                    payload = payload[2:]
            if pkt.seq != idx:
                raise ValueError(f"ledger: invalid packet index: {pkt.seq}")
            if pkt.cmd != cmd:
                raise ValueError(f"ledger: unexpected command: {pkt.cmd}")
            if pkt.channel != channel:
                raise ValueError(f"ledger: unexpected channel: {pkt.channel}")
            data += payload[:data_len - len(data)]
            idx += 1
            if len(data) == data_len:
                return channel, cmd, bytes(data)

    def exchange(self, req: APDUCommand) -> APDUResponse:
        self._write_command(CMD_APDU, req.to_bytes())
        channel, cmd, data = self._read_command()
        if channel != self.channel:
            raise ValueError(f"ledger: invalid channel in reply: {channel}")
        if cmd != CMD_APDU:
            raise ValueError(f"ledger: invalid command: {cmd}")
        return parse_apdu_response(data)

    def ping(self) -> None:
        self._write_command(CMD_PING)
        channel, cmd, data = self._read_command()
        if cmd == CMD_PING:
            if channel != self.channel:
                raise ValueError(f"ledger: invalid channel in reply: {channel}")
            return
        if cmd == CMD_APDU:
            raise APDUError(parse_apdu_response(data).sw)
        raise ValueError(f"ledger: invalid command: {cmd}")

    def close(self) -> None:
        self.dev.close()