"""Global Ledger commands available regardless of the running application."""

from __future__ import annotations

import abc
from dataclasses import dataclass

from signvault.ledger.apdu import APDU_STATUS_OK, APDUCommand, APDUError, APDUResponse
from signvault.ledger.devices import LedgerDeviceInfo

_CLA_GLOBAL = 0xB0
_INS_VERSION = 0x01
_INS_QUIT = 0xA7


class Exchanger(abc.ABC):
    """A transport's abstract device able to exchange APDUs."""

    @abc.abstractmethod
    def exchange(self, req: APDUCommand) -> APDUResponse:
        """Send a command and return the device reply."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the device."""

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


@dataclass
class DeviceInfo:
    """A device enumeration result."""

    path: str
    device_info: LedgerDeviceInfo | None = None


@dataclass
class Version:
    """Running application version info."""

    name: str
    version: str
    flags: int

    def __str__(self) -> str:
        return f"{self.name} {self.version} / {self.flags:#x}"


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def byte(self) -> int:
        return self.bytes(1)[0]

    def bytes(self, n: int) -> bytes:
        if len(self._data) - self._pos < n:
            raise ValueError("ledger: unexpected end of the message")
        chunk = self._data[self._pos:self._pos + n]
        self._pos += n
        return chunk


class App:
    """Global commands over an exchanger."""

    def __init__(self, exchanger: Exchanger) -> None:
        self.exchanger = exchanger

    def _call(self, ins: int) -> APDUResponse:
        res = self.exchanger.exchange(APDUCommand(cla=_CLA_GLOBAL, ins=ins))
        if res.sw != APDU_STATUS_OK:
            raise APDUError(res.sw)
        return res

    def get_app_version(self) -> Version:
        reader = _Reader(self._call(_INS_VERSION).data)
        fmt = reader.byte()
        if fmt != 1:
            raise ValueError(f"ledger: invalid version info format: {fmt}")
        name = reader.bytes(reader.byte())
        version = reader.bytes(reader.byte())
        flags = int.from_bytes(reader.bytes(reader.byte()), "big")
        return Version(
            name=name.decode("utf-8", "replace"),
            version=version.decode("utf-8", "replace"),
            flags=flags,
        )

    def quit_app(self) -> None:
        self._call(_INS_QUIT)

    def close(self) -> None:
        self.exchanger.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()