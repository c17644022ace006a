"""Deterministic address derivation.

Contract addresses are derived the way an EVM chain derives them, so that a
pair's address is a pure function of its registry and its canonical asset
pair and can be computed off-line by the router.
"""

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak

from cpamm.models.types import address_to_bytes, sort_tokens

# Stand-in for the pair creation code hash of the CREATE2 formula
PAIR_INIT_CODE_HASH = keccak(b"cpamm.pair.Pair")


def _to_address(digest: bytes) -> str:
    return "0x" + digest[-20:].hex()


def contract_address(deployer: str, nonce: int) -> str:
    """Address of the ``nonce``-th contract deployed by ``deployer``."""
    return _to_address(keccak(encode(["address", "uint256"], [address_to_bytes(deployer), nonce])))


def pair_salt(token0: str, token1: str) -> bytes:
    return keccak(address_to_bytes(token0) + address_to_bytes(token1))


def pair_address(factory: str, token_a: str, token_b: str) -> str:
    """CREATE2-style address of the pair for an unordered asset pair.

    Raises:
        IdenticalAddresses: If both identifiers are the same asset
        ZeroAddress: If one identifier is the zero address
    """
    token0, token1 = sort_tokens(token_a, token_b)
    digest = keccak(
        b"\xff" + address_to_bytes(factory) + pair_salt(token0, token1) + PAIR_INIT_CODE_HASH
    )
    return _to_address(digest)


def account_address(public_key: tuple[int, int]) -> str:
    """Address controlled by a secp256k1 public key."""
    x, y = public_key
    return _to_address(keccak(x.to_bytes(32, "big") + y.to_bytes(32, "big")))
