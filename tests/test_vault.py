from typing import Iterator

import pytest

from signvault.vault import (
    ECDSASignature,
    ED25519Signature,
    Registry,
    StoredKey,
    Vault,
    VaultError,
    commands,
    register_command,
    register_vault,
    registry,
)


class _Key(StoredKey):
    def __init__(self, key_id: str) -> None:
        self._id = key_id

    def public_key(self):
        return b"pub-" + self._id.encode()

    def id(self) -> str:
        return self._id


class _DummyVault(Vault):
    def __init__(self, conf):
        self.conf = conf
        self.keys = [_Key(k) for k in conf]

    def get_public_key(self, key_id):
        for key in self.keys:
            if key.id() == key_id:
                return key
        raise VaultError(f"key not found: {key_id}", status=404)

    def list_public_keys(self) -> Iterator[StoredKey]:
        yield from self.keys

    def sign(self, digest, key):
        return ED25519Signature(digest + key.id().encode())

    def name(self):
        return "Dummy"


def test_vault_is_abstract():
    with pytest.raises(TypeError):
        Vault()


def test_registry_new_passes_config():
    reg = Registry()
    reg.register("dummy", _DummyVault)
    v = reg.new("dummy", ["a", "b"])
    assert v.conf == ["a", "b"]
    assert [k.id() for k in v.list_public_keys()] == ["a", "b"]
    assert "dummy" in reg


def test_registry_unknown_driver():
    reg = Registry()
    with pytest.raises(VaultError, match="unknown vault driver: nope"):
        reg.new("nope", None)


def test_registry_replaces_factory():
    reg = Registry()
    reg.register("d", lambda conf: _DummyVault(["x"]))
    reg.register("d", lambda conf: _DummyVault(["y"]))
    assert reg.new("d", None).get_public_key("y").id() == "y"


def test_global_registry():
    register_vault("test-global-dummy", _DummyVault)
    v = registry().new("test-global-dummy", ["k"])
    assert v.name() == "Dummy"
    assert v.sign(b"d", v.get_public_key("k")) == ED25519Signature(b"dk")


def test_vault_error_status():
    err = VaultError("key not found: missing", status=404)
    assert err.status == 404
    assert "key not found: missing" in str(err)


def test_commands_registered():
    marker = object()
    register_command(marker)
    assert commands()[-1] is marker
    lst = commands()
    lst.clear()
    assert marker in commands()


def test_signature_equality():
    assert ECDSASignature(1, 2, "secp256r1") == ECDSASignature(1, 2, "secp256r1")
    assert ECDSASignature(1, 2, "secp256r1") != ECDSASignature(1, 3, "secp256r1")