"""Ledger signer backend."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from signvault.tezosapp.app import TEZOS_BIP32_ROOT, DerivationType
from signvault.tezosapp.bip32 import BIP32, BIP32H
from signvault.vault import StoredKey, Vault, VaultError

DEFAULT_CLOSE_AFTER = 10.0
"""Seconds after which an opened device is released."""

_BAD_REQUEST = 400

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyID:
    """A key on the device: derivation type and full BIP32 path."""

    dt: DerivationType
    path: BIP32

    def __str__(self) -> str:
        return f"{self.dt}/{self.path}"


def parse_key_id(s: str) -> KeyID:
    """Parse ``<derivation>/<path>``; the Tezos root is prepended when missing."""
    parts = s.split("/", 1)
    if len(parts) != 2:
        raise ValueError(f"error parsing key id: {s}")
    dt = DerivationType.from_string(parts[0])
    try:
        path = BIP32.parse(parts[1])
    except ValueError:
        raise ValueError(f"error parsing key path: {parts[1]}") from None
    if any(p & BIP32H == 0 for p in path):
        raise ValueError("only hardened derivation is supported")
    if len(path) < 2 or path[0] != TEZOS_BIP32_ROOT[0] or path[1] != TEZOS_BIP32_ROOT[1]:
        path = TEZOS_BIP32_ROOT + path
    if len(path) == 2:
        raise ValueError("root key isn't allowed to use")
    return KeyID(dt=dt, path=path)


@dataclass(frozen=True)
class LedgerKey(StoredKey):
    """A public key derived on the device."""

    key_id: KeyID
    pub: Any

    def public_key(self) -> Any:
        return self.pub

    def id(self) -> str:
        return str(self.key_id)


@dataclass
class LedgerConfig:
    """Ledger backend configuration; ``close_after`` is in seconds, 0 for the default."""

    id: str = ""
    keys: list[str] = field(default_factory=list)
    close_after: float = 0.0


class LedgerVault(Vault):
    """Signs with keys held on a Ledger device running the Tezos application.

    ``open_device(device_id)`` returns a Tezos application client. The device
    is opened on demand and released ``close_after`` seconds after opening.
    """

    def __init__(self, config: LedgerConfig, open_device: Callable[[str], Any]) -> None:
        self.config = config
        self._keys = [parse_key_id(k) for k in config.keys]
        self._open_device = open_device
        self._close_after = config.close_after or DEFAULT_CLOSE_AFTER
        self._lock = threading.Lock()
        self._dev: Any = None
        self._timer: threading.Timer | None = None

    def _error(self, err: Exception) -> VaultError:
        return VaultError(f"(Ledger/{self.config.id}): {err}")

    def _arm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        timer = threading.Timer(self._close_after, lambda: self._expire(timer))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _expire(self, timer: threading.Timer) -> None:
        with self._lock:
            if self._timer is not timer:
                return
            self._timer = None
            if self._dev is None:
                return
            try:
                self._dev.close()
            except Exception as e:  # device errors vary by transport
                logger.error("(Ledger/%s): %s", self.config.id, e)
                return
            self._dev = None

    def _open(self, retry: bool) -> Any:
        if self._dev is not None:
            if not retry:
                return self._dev
            try:
                self._dev.close()
            except Exception:
                pass
        self._dev = None
        self._dev = self._open_device(self.config.id)
        self._arm_timer()
        return self._dev

    def _get_public_key(self, key_id: KeyID) -> LedgerKey:
        with self._lock:
            try:
                dev = self._open(False)
                pub = dev.get_public_key(key_id.dt, key_id.path, False)
            except Exception as e:
                raise self._error(e) from e
        return LedgerKey(key_id=key_id, pub=pub)

    def get_public_key(self, key_id: str) -> LedgerKey:
        try:
            parsed = parse_key_id(key_id)
        except ValueError as e:
            raise VaultError(f"(Ledger/{self.config.id}): {e}", status=_BAD_REQUEST) from e
        return self._get_public_key(parsed)

    def list_public_keys(self) -> Iterator[LedgerKey]:
        for key_id in self._keys:
            yield self._get_public_key(key_id)

    def _sign_data(self, data: bytes, key: StoredKey, prehashed: bool) -> Any:
        if not isinstance(key, LedgerKey):
            raise VaultError(
                f"(Ledger/{self.config.id}): not a Ledger key: {type(key).__name__}",
                status=_BAD_REQUEST,
            )
        with self._lock:
            for attempt in (0, 1):
                try:
                    dev = self._open(attempt == 1)
                except Exception as e:
                    raise self._error(e) from e
                try:
                    return dev.sign(key.key_id.dt, key.key_id.path, data, prehashed)
                except Exception as e:
                    # the device may have been reset: reopen it once
                    if attempt == 1:
                        raise self._error(e) from e
        raise AssertionError("unreachable")

    def sign(self, digest: bytes, key: StoredKey) -> Any:
        return self._sign_data(digest, key, True)

    def sign_raw(self, data: bytes, key: StoredKey) -> Any:
        """Sign raw data; the device hashes it itself."""
        return self._sign_data(data, key, False)

    def name(self) -> str:
        return "Ledger"

    def vault_name(self) -> str:
        return self.config.id

    def close(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._dev is not None:
                dev, self._dev = self._dev, None
                dev.close()

    def __enter__(self) -> "LedgerVault":
        return self

    def __exit__(self, *exc) -> None:
        self.close()