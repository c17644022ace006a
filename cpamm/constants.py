"""Protocol constants for the constant-product AMM.

Centralizes storage widths, well-known addresses and cost units.
"""

# Storage widths
UINT32_MODULUS = 2**32
UINT112_MAX = 2**112 - 1
UINT256_MAX = 2**256 - 1

# Price accumulators are 224-bit and wrap silently
PRICE_ACCUMULATOR_BITS = 224

# UQ112x112 fixed-point scale
Q112 = 2**112

# Claim tokens locked forever on the first deposit of every pair
MINIMUM_LIQUIDITY = 10**3

# Default swap fee: 3 / 1000 = 0.3% of the input amount
FEE_NUMERATOR = 3
FEE_DENOMINATOR = 1000

# Protocol fee takes 1 / (divisor + 1) of the growth in sqrt(k)
PROTOCOL_FEE_DIVISOR = 5

ZERO_ADDRESS = "0x" + "00" * 20

# Recipient of MINIMUM_LIQUIDITY. No key controls it.
DEAD_ADDRESS = ZERO_ADDRESS

# Claim-token metadata (fixed regardless of the underlying assets)
CLAIM_TOKEN_NAME = "Pair Liquidity"
CLAIM_TOKEN_SYMBOL = "PAIR-LP"
CLAIM_TOKEN_DECIMALS = 18

# Typed-data signing (permit)
CHAIN_ID = 1
PERMIT_TYPEHASH_SIGNATURE = (
    "Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)"
)
DOMAIN_TYPEHASH_SIGNATURE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)

# Cost units charged against the per-transaction budget
DEFAULT_GAS_LIMIT = 30_000_000
TRANSFER_GAS_COST = 27_513
BALANCE_READ_GAS_COST = 2_600
PAIR_UPDATE_GAS_COST = 20_000
CALLBACK_GAS_COST = 10_000
CREATE_PAIR_GAS_COST = 2_000_000
