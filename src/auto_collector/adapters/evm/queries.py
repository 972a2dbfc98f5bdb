"""
ERC20 state queries over a ``LedgerClient``.

Thin wrappers that name the two reads the orchestrators and the approval
report depend on. Errors from the ledger propagate unchanged; a value that
is not an unsigned integer is reported as a read failure.
"""

from typing import Any

from ...engine.exceptions import BlockchainInteractionError
from ..bases import LedgerClient


def _to_uint(method: str, value: Any) -> int:
    # bool is an int subclass but never a valid uint256 response
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise BlockchainInteractionError(f"Malformed {method} response: {value!r}")
    return value


async def query_erc20_allowance(ledger: LedgerClient, token_addr: str, owner: str, spender: str) -> int:
    """
    Retrieves the amount of tokens that an owner allowed a spender to withdraw.

    Args:
        ledger (LedgerClient): Ledger with ``token_addr`` registered.
        token_addr (str): The contract address of the ERC20 token.
        owner (str): The address of the token holder.
        spender (str): The address authorized to spend the tokens.

    Returns:
        int: The remaining allowance amount in the token's base units.

    Raises:
        BlockchainInteractionError: If the contract call fails, the node returns an error,
            or the response is not an unsigned integer.
    """
    allowance = await ledger.read_view(token_addr, "allowance", [owner, spender])
    return _to_uint("allowance", allowance)


async def query_erc20_balance(ledger: LedgerClient, token_addr: str, owner: str) -> int:
    """
    Retrieves the token balance of ``owner`` in base units.

    Raises:
        BlockchainInteractionError: If the contract call fails or the response is malformed.
    """
    balance = await ledger.read_view(token_addr, "balanceOf", [owner])
    return _to_uint("balanceOf", balance)
