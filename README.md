# signvault

Key vault backends for a Tezos remote signer. A vault holds private keys
somewhere safe and exposes their public halves and a signing operation.

Included backends:

- **AWS KMS** (`signvault.awskms`): fetches, lists and signs with elliptic
  curve keys whose usage is `SIGN_VERIFY`, through a KMS client you supply.
- **Ledger** (`signvault.ledger.vault`): drives the Tezos application on a
  Ledger device through an exchanger you supply.

## Vaults and the registry

Every backend implements the `Vault` interface from `signvault.vault`:
`get_public_key(key_id)`, `list_public_keys()`, `sign(digest, key)` and
`name()`. Keys implement `StoredKey` (`public_key()` and `id()`).
Signatures are returned as `ECDSASignature(r, s, curve)` or
`ED25519Signature(data)`. Backend failures raise `VaultError`, which may
carry an HTTP-style `status` (for example 400 for a key of the wrong backend).

Drivers register a factory under a name and are created from a
configuration value:

```python
from signvault.vault import register_vault, registry

register_vault("mydriver", lambda conf: MyVault(**conf))
vault = registry().new("mydriver", {"region": "eu-west-1"})
```

Asking for an unknown driver raises `VaultError("unknown vault driver: ...")`.
`register_command` and `commands` keep a plain list of driver-specific
command objects; the package registers none itself.

## AWS KMS

```python
from signvault.awskms import AWSKMSConfig, AWSKMSVault

config = AWSKMSConfig(
    user_name="signer",
    access_key_id="placeholder",
    secret_access_key="secret",
    region="eu-west-1",
)
vault = AWSKMSVault(kms_client, config)
for key in vault.list_public_keys():
    print(key.id())
```

`kms_client` is any object with `list_keys`, `get_public_key` and `sign`
methods taking the service's keyword arguments (`KeyId`, `Marker`,
`Message`, ...) and returning its response mappings. Key listing follows
`NextMarker` while the response is `Truncated`. `sign` sends the digest with
`MessageType="DIGEST"` and `ECDSA_SHA_256`, and decodes the DER signature into
an `ECDSASignature` named after the key's curve (`"P-256"` and so on).
Every `AWSKMSConfig` field is required; an empty one raises `ValueError`.

## Ledger

### BIP32 paths and derivation types

```python
from signvault.tezosapp.bip32 import BIP32
from signvault.tezosapp.app import DerivationType

path = BIP32.parse("44'/1729'/0'/0'")
print(path.to_bytes().hex())          # 04 8000002c 800006c1 80000000 80000000
print(BIP32.from_bytes(path.to_bytes()) == path)
print(DerivationType.from_string("secp256r1"))   # P-256
```

### Talking to the device

- `signvault.ledger.apdu`: `APDUCommand`, `APDUResponse`,
  `parse_apdu_response` and `APDUError`.
- `signvault.ledger.usbhid`: `HIDRoundTripper(dev, channel=None)` frames APDUs
  into 64-byte HID reports over `dev`, an object with `write(bytes)`,
  `read(size)` and `close()`; it also offers `ping()`.
- `signvault.ledger.app`: `App` sends global commands
  (`get_app_version()`, `quit_app()`).
- `signvault.ledger.devices`: `find_device_info(product_id)` looks up the
  known Ledger models.
- `signvault.tezosapp.app`: `TezosApp` sends Tezos application commands:
  `get_version`, `get_public_key`, `sign`, `setup_baking`,
  `deauthorize_baking`, `get_high_watermark(s)` and `set_high_watermark`.
  Device status codes raise `TezosError`.

### The Ledger vault

A Ledger vault is given a function that takes the configured device id and
returns a `TezosApp`. Keys are named `<derivation>/<path>`; the Tezos root
`44'/1729'` is prepended when missing, and only hardened paths are accepted:

```python
from signvault.ledger.usbhid import HIDRoundTripper
from signvault.ledger.vault import LedgerConfig, LedgerVault
from signvault.tezosapp.app import TezosApp

def open_device(device_id):
    return TezosApp(HIDRoundTripper(hid_device))

with LedgerVault(LedgerConfig(id="", keys=["ed25519/0'/0'"]), open_device) as vault:
    key = vault.get_public_key("ed25519/0'/0'")
    signature = vault.sign(digest, key)
```

The device is opened on first use and released `LedgerConfig.close_after`
seconds after it was opened (ten by default). A signing request that fails is
retried once after reopening the device. `sign_raw` sends unhashed data for
the device to hash.

## What the package does not do

It has no command-line tool and no HTTP server: it provides vault objects
for a signer to use. It does not find or open USB HID devices by itself;
the caller passes an open device object to `HIDRoundTripper`. It has no
file-based or in-memory key vault, and it does not compute Tezos key hashes
or addresses.

## Tests

The tests use pytest, installed with the `test` extra.