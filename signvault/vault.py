"""Vault interfaces, signature values and the vault driver registry."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Callable, Iterator


class VaultError(Exception):
    """Error raised by a vault backend, optionally carrying an HTTP status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class ECDSASignature:
    """An ECDSA signature with the name of the curve it was made on."""

    r: int
    s: int
    curve: str


@dataclass(frozen=True)
class ED25519Signature:
    """A raw 64-byte Ed25519 signature."""

    data: bytes


class StoredKey(abc.ABC):
    """A public key whose private counterpart is held by a backend."""

    @abc.abstractmethod
    def public_key(self) -> Any:
        """Return the public key."""

    @abc.abstractmethod
    def id(self) -> str:
        """Return the backend-specific key identifier."""


class Vault(abc.ABC):
    """A secure key store able to sign digests."""

    @abc.abstractmethod
    def get_public_key(self, key_id: str) -> StoredKey:
        """Return the stored key with the given identifier."""

    @abc.abstractmethod
    def list_public_keys(self) -> Iterator[StoredKey]:
        """Iterate over the keys held by the backend."""

    @abc.abstractmethod
    def sign(self, digest: bytes, key: StoredKey) -> Any:
        """Sign a precomputed digest with the given key."""

    @abc.abstractmethod
    def name(self) -> str:
        """Return the backend name."""


VaultFactory = Callable[[Any], Vault]


class Registry:
    """Maps driver names to vault factories."""

    def __init__(self) -> None:
        self._factories: dict[str, VaultFactory] = {}

    def register(self, name: str, factory: VaultFactory) -> None:
        self._factories[name] = factory

    def new(self, name: str, conf: Any) -> Vault:
        try:
            factory = self._factories[name]
        except KeyError:
            raise VaultError(f"unknown vault driver: {name}") from None
        return factory(conf)

    def __contains__(self, name: object) -> bool:
        return name in self._factories


_registry = Registry()
_commands: list[Any] = []


def register_vault(name: str, factory: VaultFactory) -> None:
    """Register a vault driver in the global registry."""
    _registry.register(name, factory)


def registry() -> Registry:
    """Return the global vault registry."""
    return _registry


def register_command(command: Any) -> None:
    """Register a driver-specific command."""
    _commands.append(command)


def commands() -> list[Any]:
    """Return the registered driver-specific commands."""
    return list(_commands)