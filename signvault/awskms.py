"""AWS KMS signer backend."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Iterator

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from cryptography.hazmat.primitives.serialization import load_der_public_key

from signvault.vault import ECDSASignature, StoredKey, Vault, VaultError

KEY_USAGE_SIGN_VERIFY = "SIGN_VERIFY"
MESSAGE_TYPE_DIGEST = "DIGEST"
SIGNING_ALGORITHM_ECDSA_SHA_256 = "ECDSA_SHA_256"

_CURVE_NAMES = {
    "secp256r1": "P-256",
    "secp384r1": "P-384",
    "secp521r1": "P-521",
    "secp256k1": "secp256k1",
}


@dataclass
class AWSKMSConfig:
    """AWS KMS backend configuration; every field is required."""

    user_name: str
    access_key_id: str
    secret_access_key: str
    region: str

    def __post_init__(self) -> None:
        missing = [f.name for f in fields(self) if not getattr(self, f.name)]
        if missing:
            raise ValueError(f"(AWSKMS): missing required fields: {', '.join(missing)}")


@dataclass(frozen=True)
class AWSKMSKey(StoredKey):
    """A key stored in AWS KMS."""

    key_id: str
    pub: ec.EllipticCurvePublicKey

    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self.pub

    def id(self) -> str:
        return self.key_id


class AWSKMSVault(Vault):
    """Signs with keys in AWS KMS.

    ``kms_api`` is a KMS client with ``list_keys``, ``get_public_key`` and
    ``sign`` taking the service's keyword arguments and returning its
    response dictionaries.
    """

    def __init__(self, kms_api: Any, config: AWSKMSConfig | None = None) -> None:
        self.kms_api = kms_api
        self.config = config

    def get_public_key(self, key_id: str) -> AWSKMSKey:
        resp = self.kms_api.get_public_key(KeyId=key_id)
        if resp.get("KeyUsage") != KEY_USAGE_SIGN_VERIFY:
            raise VaultError("key usage must be SIGN_VERIFY")
        try:
            pub = load_der_public_key(bytes(resp["PublicKey"]))
        except (ValueError, TypeError) as e:
            raise VaultError(f"failed to parse public key: {e}") from e
        if not isinstance(pub, ec.EllipticCurvePublicKey):
            raise VaultError(f"key is not EC: {type(pub).__name__}")
        return AWSKMSKey(key_id=resp.get("KeyId", key_id), pub=pub)

    def _list_key_ids(self) -> list[str]:
        ids: list[str] = []
        kwargs: dict[str, Any] = {}
        while True:
            resp = self.kms_api.list_keys(**kwargs)
            keys = resp.get("Keys")
            if keys is None:
                raise VaultError("key list empty")
            ids.extend(entry["KeyId"] for entry in keys)
            if not resp.get("Truncated"):
                return ids
            kwargs["Marker"] = resp["NextMarker"]

    def list_public_keys(self) -> Iterator[AWSKMSKey]:
        for key_id in self._list_key_ids():
            yield self.get_public_key(key_id)

    def sign(self, digest: bytes, key: StoredKey) -> ECDSASignature:
        if not isinstance(key, AWSKMSKey):
            raise VaultError(
                f"(AWSKMS): not an AWS KMS key: {type(key).__name__}", status=400
            )
        kid = key.id()
        resp = self.kms_api.sign(
            KeyId=kid,
            Message=digest,
            MessageType=MESSAGE_TYPE_DIGEST,
            SigningAlgorithm=SIGNING_ALGORITHM_ECDSA_SHA_256,
        )
        try:
            r, s = decode_dss_signature(bytes(resp["Signature"]))
        except ValueError as e:
            raise VaultError(f"(AWSKMS/{kid}): {e}") from e
        curve = _CURVE_NAMES.get(key.pub.curve.name, key.pub.curve.name)
        return ECDSASignature(r=r, s=s, curve=curve)

    def name(self) -> str:
        return "AWSKMS"