"""APDU command and response framing."""

from __future__ import annotations

from dataclasses import dataclass

APDU_STATUS_OK = 0x9000


@dataclass
class APDUCommand:
    """An APDU command (not fully ISO 7816-4 conformant).

    ``force_lc`` emits the Lc byte even for empty data, as some
    applications require it.
    """

    cla: int
    ins: int
    p1: int = 0
    p2: int = 0
    data: bytes = b""
    raw: bytes | None = None
    force_lc: bool = False

    def to_bytes(self) -> bytes:
        if self.raw is not None:
            return bytes(self.raw)
        out = bytearray((self.cla, self.ins, self.p1, self.p2))
        if self.force_lc or self.data:
            out.append(len(self.data) & 0xFF)
        out += self.data
        return bytes(out)


@dataclass
class APDUResponse:
    """An APDU response: payload and status word."""

    data: bytes
    sw: int


class APDUError(Exception):
    """A bare numeric APDU status code."""

    def __init__(self, sw: int) -> None:
        self.sw = sw
        super().__init__(f"ledger: APDU {sw:#04x}")


def parse_apdu_response(buf: bytes) -> APDUResponse:
    """Split a raw reply into payload and trailing status word."""
    if len(buf) < 2:
        raise ValueError("ledger: error parsing APDU response")
    return APDUResponse(data=bytes(buf[:-2]), sw=int.from_bytes(buf[-2:], "big"))