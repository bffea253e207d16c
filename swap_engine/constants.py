"""Protocol constants for the swap engine.

Centralizes chain ids, well-known contract addresses and transaction parameters.
"""

from swap_engine.models.types import is_valid_address

# Chain ids
CELO_MAINNET_CHAIN_ID = 42220
ALFAJORES_CHAIN_ID = 44787

# Basis point denominator for slippage tolerances
BPS_DENOMINATOR = 10_000

# Default slippage tolerance (0.5%)
DEFAULT_SLIPPAGE_BPS = 50

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _validate_contract_address(name: str, address: str) -> str:
    """Validate and return a lowercase contract address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address.lower()


# Mento broker contracts
MENTO_BROKER_MAINNET = _validate_contract_address(
    "Mento broker (mainnet)", "0x777a8255ca72412f0d706dc03c9d1987306b4cad"
)
MENTO_BROKER_ALFAJORES = _validate_contract_address(
    "Mento broker (Alfajores)", "0xD3Dff18E465bCa6241A244144765b4421Ac14D09"
)

# Gas limits used when a fixed limit is required
APPROVAL_GAS_LIMIT = 300_000
APPROVAL_RETRY_GAS_LIMIT = 400_000
SWAP_GAS_LIMIT = 800_000
# Manual limit used once when dynamic gas estimation fails
FALLBACK_SWAP_GAS_LIMIT = 500_000

# Price bump applied to the single approval retry (1.2x)
GAS_PRICE_BUMP_PERCENT = 20

# Confirmations to wait for, by network class
MAINNET_CONFIRMATIONS = 1
TESTNET_CONFIRMATIONS = 2
