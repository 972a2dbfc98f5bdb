"""
EVM Chain Configuration and Unit Conversion

Provides the default network and asset configuration (BNB Smart Chain,
BEP-20 USDT), and exact conversions between smallest-unit integer values
and human-readable amounts.

All conversions go through ``Decimal``; token arithmetic stays in ``int``
until a value is formatted for display.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Dict

from pydantic import BaseModel, Field


class EvmAssetConfig(BaseModel):
    """Token asset configuration."""
    symbol: str
    address: str = Field(..., description="Token contract address")
    name: str = Field(..., description="Token name")
    decimals: int = Field(..., description="Token decimals")


class EvmChainConfig(BaseModel):
    """EVM blockchain network configuration."""
    caip2: str
    chain_id: int
    name: str
    native_symbol: str = Field(..., description="Symbol of the gas currency")
    public_rpc_url: str = Field(..., description="Public RPC endpoint")
    explorer_url: str = Field(..., description="Block explorer URL")
    assets: Dict[str, EvmAssetConfig] = Field(default_factory=dict, description="Supported assets")


_EVM_CHAINS_DATA: Dict = {
    "eip155:56": {
        "name": "BNB Smart Chain Mainnet",
        "native_symbol": "BNB",
        "public_rpc_url": "https://bsc-dataseed.binance.org",
        "explorer_url": "https://bscscan.com",
        "assets": {
            "USDT": {
                "address": "0x55d398326f99059fF775485246999027B3197955",
                "name": "Tether USD",
                "decimals": 18,
            }
        }
    },
    "eip155:97": {
        "name": "BNB Smart Chain Testnet",
        "native_symbol": "tBNB",
        "public_rpc_url": "https://data-seed-prebsc-1-s1.binance.org:8545",
        "explorer_url": "https://testnet.bscscan.com",
        "assets": {}
    },
}


def get_chain_config(caip2: str) -> EvmChainConfig | None:
    """Return the configuration for a CAIP-2 chain id, or None if unknown."""
    data = _EVM_CHAINS_DATA.get(caip2)
    if data is None:
        return None
    chain_id = int(caip2.split(":", 1)[1])
    assets = {
        symbol: EvmAssetConfig(symbol=symbol, **asset)
        for symbol, asset in data["assets"].items()
    }
    return EvmChainConfig(
        caip2=caip2,
        chain_id=chain_id,
        name=data["name"],
        native_symbol=data["native_symbol"],
        public_rpc_url=data["public_rpc_url"],
        explorer_url=data["explorer_url"],
        assets=assets,
    )


DEFAULT_CHAIN = get_chain_config("eip155:56")
DEFAULT_TOKEN = DEFAULT_CHAIN.assets["USDT"]

#: Decimals of the native gas currency on every EVM chain.
NATIVE_DECIMALS: int = 18

#: Native balance below which a user is topped up, and the top-up amount.
DEFAULT_GAS_TOPUP: str = "0.00004"

#: Allowances above this (1,000,000 tokens at 18 decimals) are displayed as
#: unlimited by the approval report. Display only.
UNLIMITED_ALLOWANCE_THRESHOLD: int = 10 ** 24

#: Default number of past blocks scanned by the approval report.
DEFAULT_SCAN_BLOCKS: int = 1000

# Enough digits for any uint256 plus its fractional part.
_PRECISION = 100


def amount_to_value(*, amount: float | int | str | Decimal, decimals: int) -> int:
    """Convert a human-readable token `amount` into smallest-unit integer `value`.

    Args:
        amount: Human-readable amount (e.g. "0.00004" BNB). Accepts float/int/str/Decimal.
        decimals: Token decimals (e.g. 18 for BEP-20 USDT).

    Returns:
        int: Smallest-unit integer value.

    Raises:
        ValueError: If inputs are invalid or the amount cannot be represented in smallest units.
    """
    if not isinstance(decimals, int) or decimals < 0:
        raise ValueError("decimals must be a non-negative int")

    try:
        # str() avoids binary-float surprises (0.1 -> 0.100000000000000005...)
        dec_amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e

    if not dec_amount.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    if dec_amount < 0:
        raise ValueError("amount must be non-negative")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = dec_amount.scaleb(decimals)

    if scaled != scaled.to_integral_value():
        raise ValueError(
            f"amount {amount!r} is not representable with decimals={decimals} "
            f"(would create fractional smallest units)"
        )

    return int(scaled)


def value_to_amount(*, value: int | str | Decimal, decimals: int) -> Decimal:
    """Convert a smallest-unit integer `value` into an exact human-readable `Decimal`.

    Args:
        value: Smallest-unit integer value (e.g. 500 * 10**18). Accepts int/str/Decimal.
        decimals: Token decimals.

    Returns:
        Decimal: Exact human-readable amount.

    Raises:
        ValueError: If inputs are invalid.
    """
    if not isinstance(decimals, int) or decimals < 0:
        raise ValueError("decimals must be a non-negative int")

    try:
        dec_value = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Invalid value: {value!r}") from e

    if dec_value < 0:
        raise ValueError("value must be non-negative")

    if dec_value != dec_value.to_integral_value():
        raise ValueError("value must be an integer in smallest units")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return dec_value.scaleb(-decimals)


def format_amount(value: int, decimals: int, places: int | None = None) -> str:
    """Format a smallest-unit value for display.

    With ``places`` set the amount is truncated (never rounded up) to that
    many fractional digits; otherwise trailing zeros are stripped.
    """
    amount = value_to_amount(value=value, decimals=decimals)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if places is None:
            return format(amount.normalize(), "f")
        quantum = Decimal(1).scaleb(-places)
        return format(amount.quantize(quantum, rounding=ROUND_DOWN), "f")


def explorer_tx_url(explorer_url: str, tx_hash: str) -> str:
    """Block explorer link for a transaction hash."""
    return f"{explorer_url.rstrip('/')}/tx/{tx_hash}"
