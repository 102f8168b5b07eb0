"""Client for the Tezos application running on a Ledger device."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from signvault.ledger.apdu import APDUCommand, APDUResponse
from signvault.ledger.app import Exchanger
from signvault.tezosapp.bip32 import BIP32, BIP32H
from signvault.tezosapp.errors import ERR_OK, TezosError
from signvault.vault import ECDSASignature, ED25519Signature

CLA_TEZOS = 0x80

INS_VERSION = 0x00
INS_AUTHORIZE_BAKING = 0x01
INS_GET_PUBLIC_KEY = 0x02
INS_PROMPT_PUBLIC_KEY = 0x03
INS_SIGN = 0x04
INS_SIGN_UNSAFE = 0x05
INS_RESET = 0x06
INS_QUERY_AUTH_KEY = 0x07
INS_QUERY_MAIN_HWM = 0x08
INS_GIT = 0x09
INS_SETUP = 0x0A
INS_QUERY_ALL_HWM = 0x0B
INS_DEAUTHORIZE = 0x0C
INS_QUERY_AUTH_KEY_WITH_CURVE = 0x0D
INS_HMAC = 0x0E
INS_SIGN_WITH_HASH = 0x0F

APP_TEZOS = 0
APP_TEZBAKE = 1

TAG_COMPRESSED = 2
TAG_UNCOMPRESSED = 4

MAX_APDU_SIZE = 230
P1_NEXT = 0x01
P1_LAST = 0x80

ED25519_PUBLIC_KEY_SIZE = 32
ED25519_SIGNATURE_SIZE = 64

TEZOS_BIP32_ROOT = BIP32((44 | BIP32H, 1729 | BIP32H))
"""Tezos root key path, 44'/1729'."""


class DerivationType(IntEnum):
    """Key derivation method; determines the curve."""

    ED25519 = 0
    SECP256K1 = 1
    SECP256R1 = 2
    BIP32_ED25519 = 3
    P256 = 2

    @classmethod
    def from_string(cls, s: str) -> "DerivationType":
        try:
            return _DERIVATION_NAMES[s.lower()]
        except KeyError:
            raise ValueError(f"unknown key derivation type: {s}") from None

    def __str__(self) -> str:
        return _DERIVATION_STRINGS.get(self, f"({int(self)})")


_DERIVATION_NAMES = {
    "ed25519": DerivationType.ED25519,
    "secp256k1": DerivationType.SECP256K1,
    "p-256": DerivationType.SECP256R1,
    "secp256r1": DerivationType.SECP256R1,
    "bip25519": DerivationType.BIP32_ED25519,
    "bip32-ed25519": DerivationType.BIP32_ED25519,
}

_DERIVATION_STRINGS = {
    DerivationType.ED25519: "ed25519",
    DerivationType.SECP256K1: "secp256k1",
    DerivationType.SECP256R1: "P-256",
    DerivationType.BIP32_ED25519: "bip32-ed25519",
}

_ED25519_TYPES = frozenset({DerivationType.ED25519, DerivationType.BIP32_ED25519})

_CURVES: dict[int, tuple[ec.EllipticCurve, str]] = {
    DerivationType.SECP256K1: (ec.SECP256K1(), "secp256k1"),
    DerivationType.SECP256R1: (ec.SECP256R1(), "P-256"),
}


@dataclass
class TezosVersion:
    """Version of the Tezos application."""

    app_class: int
    major: int
    minor: int
    patch: int
    git: str = ""

    def __str__(self) -> str:
        cls = {APP_TEZOS: "Tezos", APP_TEZBAKE: "TezBake"}.get(self.app_class, "Unknown")
        return f"{cls} {self.major}.{self.minor}.{self.patch} {self.git}"


@dataclass
class HWM:
    """High water marks and the chain they apply to."""

    chain_id: bytes = field(default=bytes(4))
    main: int = 0
    test: int = 0


def _check_path(path: BIP32) -> None:
    if any(p & BIP32H == 0 for p in path):
        raise ValueError("only hardened derivation supported")


def parse_public_key(data: bytes, derivation: DerivationType) -> Any:
    """Decode a public key reply for the given derivation type."""
    if len(data) < 2:
        raise ValueError("public key reply is too short")
    ln = data[0]
    comp = data[1]
    if ln < 1 or ln > len(data) - 1:
        raise ValueError("invalid public key reply length")
    key = bytes(data[2:ln + 1])

    if derivation in _ED25519_TYPES:
        if comp != TAG_COMPRESSED:
            raise ValueError(f"invalid compression tag: {comp}")
        if len(key) != ED25519_PUBLIC_KEY_SIZE:
            raise ValueError(f"invalid public key length: {len(key)}")
        return Ed25519PublicKey.from_public_bytes(key)

    if derivation in _CURVES:
        if comp != TAG_UNCOMPRESSED:
            raise ValueError(f"invalid compression tag: {comp}")
        if len(key) != 64:
            raise ValueError(f"invalid public key length: {len(key)}")
        curve, name = _CURVES[derivation]
        x = int.from_bytes(key[:32], "big")
        y = int.from_bytes(key[32:], "big")
        try:
            return ec.EllipticCurvePublicNumbers(x, y, curve).public_key()
        except ValueError:
            raise ValueError(f"point is not on {name}") from None

    raise ValueError(f"invalid derivation type: {int(derivation)}")


def _decode_ecdsa(data: bytes) -> tuple[int, int]:
    buf = bytearray(data)
    if buf:
        # the device sets a parity flag in the first byte which breaks DER
        buf[0] &= 0xFE
    if len(buf) >= 2 and buf[1] < 0x80:
        buf = buf[:buf[1] + 2]
    return decode_dss_signature(bytes(buf))


class TezosApp:
    """Commands of the Tezos application over an exchanger."""

    def __init__(self, exchanger: Exchanger) -> None:
        self.exchanger = exchanger

    def _exchange(self, cmd: APDUCommand) -> APDUResponse:
        res = self.exchanger.exchange(cmd)
        if res.sw != ERR_OK:
            raise TezosError(res.sw)
        return res

    def get_version(self) -> TezosVersion:
        res = self._exchange(APDUCommand(cla=CLA_TEZOS, ins=INS_VERSION, force_lc=True))
        if len(res.data) < 4:
            raise ValueError("invalid version length")
        ver = TezosVersion(*res.data[:4])
        res = self._exchange(APDUCommand(cla=CLA_TEZOS, ins=INS_GIT, force_lc=True))
        ver.git = res.data.decode("utf-8", "replace").rstrip("\x00")
        return ver

    def get_public_key(self, derivation: DerivationType, path: BIP32, prompt: bool = False) -> Any:
        _check_path(path)
        res = self._exchange(
            APDUCommand(
                cla=CLA_TEZOS,
                ins=INS_PROMPT_PUBLIC_KEY if prompt else INS_GET_PUBLIC_KEY,
                p2=int(derivation),
                data=path.to_bytes(),
            )
        )
        return parse_public_key(res.data, derivation)

    def sign(
        self, derivation: DerivationType, path: BIP32, data: bytes, prehashed: bool = False
    ) -> ECDSASignature | ED25519Signature:
        """Sign a message, or a precomputed hash when ``prehashed`` is set."""
        ins = INS_SIGN_UNSAFE if prehashed else INS_SIGN
        res = self._exchange(
            APDUCommand(cla=CLA_TEZOS, ins=ins, p2=int(derivation), data=path.to_bytes())
        )
        for off in range(0, len(data), MAX_APDU_SIZE):
            chunk = bytes(data[off:off + MAX_APDU_SIZE])
            p1 = P1_NEXT | (P1_LAST if off + len(chunk) == len(data) else 0)
            res = self._exchange(
                APDUCommand(cla=CLA_TEZOS, ins=ins, p1=p1, p2=int(derivation), data=chunk)
            )

        if derivation in _ED25519_TYPES:
            if len(res.data) != ED25519_SIGNATURE_SIZE:
                raise ValueError(f"invalid signature length: {len(res.data)}")
            return ED25519Signature(bytes(res.data))

        if derivation in _CURVES:
            r, s = _decode_ecdsa(res.data)
            return ECDSASignature(r=r, s=s, curve=_CURVES[derivation][1])

        raise ValueError(f"invalid derivation type: {int(derivation)}")

    def setup_baking(self, hwm: HWM | None, derivation: DerivationType, path: BIP32) -> Any:
        if hwm is None:
            hwm = HWM()
        _check_path(path)
        data = (
            bytes(hwm.chain_id[:4]).ljust(4, b"\x00")
            + hwm.main.to_bytes(4, "big")
            + hwm.test.to_bytes(4, "big")
            + path.to_bytes()
        )
        res = self._exchange(
            APDUCommand(cla=CLA_TEZOS, ins=INS_SETUP, p2=int(derivation), data=data)
        )
        return parse_public_key(res.data, derivation)

    def deauthorize_baking(self) -> None:
        self._exchange(APDUCommand(cla=CLA_TEZOS, ins=INS_DEAUTHORIZE, force_lc=True))

    def get_high_watermarks(self) -> HWM:
        res = self._exchange(APDUCommand(cla=CLA_TEZOS, ins=INS_QUERY_ALL_HWM, force_lc=True))
        data = res.data
        if len(data) < 12:
            raise ValueError(f"invalid reply length: {len(data)}")
        return HWM(
            chain_id=bytes(data[8:12]).ljust(4, b"\x00"),
            main=int.from_bytes(data[0:4], "big"),
            test=int.from_bytes(data[4:8], "big"),
        )

    def get_high_watermark(self) -> int:
        res = self._exchange(APDUCommand(cla=CLA_TEZOS, ins=INS_QUERY_MAIN_HWM, force_lc=True))
        if len(res.data) < 4:
            raise ValueError(f"invalid reply length: {len(res.data)}")
        return int.from_bytes(res.data[:4], "big")

    def set_high_watermark(self, hwm: int) -> None:
        self._exchange(
            APDUCommand(cla=CLA_TEZOS, ins=INS_RESET, data=(hwm & 0xFFFFFFFF).to_bytes(4, "big"))
        )

    def close(self) -> None:
        self.exchanger.close()

    def __enter__(self) -> "TezosApp":
        return self

    def __exit__(self, *exc) -> None:
        self.close()