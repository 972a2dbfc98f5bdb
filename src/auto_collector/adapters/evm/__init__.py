from .adapter import EVMLedgerClient, normalize_private_key
from .ERC20_ABI import get_erc20_abi, get_collector_abi
from .queries import query_erc20_allowance, query_erc20_balance
from .constants import (
    DEFAULT_CHAIN,
    DEFAULT_TOKEN,
    amount_to_value,
    value_to_amount,
    format_amount,
    explorer_tx_url,
)

__all__ = [
    "EVMLedgerClient",
    "normalize_private_key",
    "get_erc20_abi",
    "get_collector_abi",
    "query_erc20_allowance",
    "query_erc20_balance",
    "DEFAULT_CHAIN",
    "DEFAULT_TOKEN",
    "amount_to_value",
    "value_to_amount",
    "format_amount",
    "explorer_tx_url",
]
