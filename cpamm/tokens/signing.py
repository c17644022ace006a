"""Signed off-chain authorization.

Typed-data (EIP-712) digests are built with eth_abi and keccak; signatures
are secp256k1 (v, r, s) triples produced and recovered with py_ecc.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak
from py_ecc.secp256k1.secp256k1 import ecdsa_raw_recover, ecdsa_raw_sign, privtopub

from cpamm.addressing import account_address
from cpamm.constants import DOMAIN_TYPEHASH_SIGNATURE, PERMIT_TYPEHASH_SIGNATURE
from cpamm.errors import InvalidSignature
from cpamm.models.types import address_to_bytes

DOMAIN_TYPEHASH = keccak(text=DOMAIN_TYPEHASH_SIGNATURE)
PERMIT_TYPEHASH = keccak(text=PERMIT_TYPEHASH_SIGNATURE)

# Upper bound of the low-s half of the secp256k1 group order
SECP256K1_HALF_N = 0x7FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF5D576E7357A4501DDFE92F46681B20A0


@dataclass(frozen=True)
class Signature:
    v: int
    r: int
    s: int


@dataclass(frozen=True)
class Account:
    """Externally owned account: a private key and the address it controls."""

    private_key: bytes
    address: str

    @classmethod
    def from_key(cls, private_key: bytes) -> Account:
        if len(private_key) != 32:
            raise ValueError(f"Private key must be 32 bytes, got {len(private_key)}")
        return cls(private_key=private_key, address=account_address(privtopub(private_key)))

    @classmethod
    def from_seed(cls, seed: str) -> Account:
        """Deterministic account for simulations and tests."""
        return cls.from_key(keccak(text=seed))

    def sign_digest(self, digest: bytes) -> Signature:
        v, r, s = ecdsa_raw_sign(digest, self.private_key)
        return Signature(v=v, r=r, s=s)


def domain_separator(
    name: str, verifying_contract: str, chain_id: int, version: str = "1"
) -> bytes:
    return keccak(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                DOMAIN_TYPEHASH,
                keccak(text=name),
                keccak(text=version),
                chain_id,
                address_to_bytes(verifying_contract),
            ],
        )
    )


def permit_digest(
    separator: bytes,
    owner: str,
    spender: str,
    value: int,
    nonce: int,
    deadline: int,
) -> bytes:
    """Digest signed by ``owner`` to authorize an allowance off-chain."""
    struct_hash = keccak(
        encode(
            ["bytes32", "address", "address", "uint256", "uint256", "uint256"],
            [
                PERMIT_TYPEHASH,
                address_to_bytes(owner),
                address_to_bytes(spender),
                value,
                nonce,
                deadline,
            ],
        )
    )
    return keccak(b"\x19\x01" + separator + struct_hash)


def recover_signer(digest: bytes, v: int, r: int, s: int) -> str:
    """Address whose key produced (v, r, s) over ``digest``.

    Raises:
        InvalidSignature: If the signature is malformed or not recoverable
    """
    if v not in (27, 28) or not (0 < r) or not (0 < s <= SECP256K1_HALF_N):
        raise InvalidSignature("Malformed signature")
    try:
        public_key = ecdsa_raw_recover(digest, (v, r, s))
    except ValueError as err:
        raise InvalidSignature(str(err)) from err
    if not public_key:
        raise InvalidSignature("Signature does not recover to a public key")
    return account_address(public_key)


__all__ = [
    "Account",
    "Signature",
    "domain_separator",
    "permit_digest",
    "recover_signer",
    "DOMAIN_TYPEHASH",
    "PERMIT_TYPEHASH",
]
