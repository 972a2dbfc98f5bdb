"""
ERC20 + Collector Smart Contract ABI Module

This module provides minimal ABI definitions for the token reads, the
``Approval`` event scan and the collector contract's ``collectFrom`` call.

Usage:
    from ERC20_ABI import (
        get_erc20_abi,
        get_collector_abi,
    )

    # Register the token with a ledger client
    ledger.register_contract(token_address, get_erc20_abi())

    # Register the collector contract
    ledger.register_contract(collector_address, get_collector_abi())
"""

from typing import Dict, Any, List


def get_balance_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for querying a token balance.

    Returns:
        List[Dict[str, Any]]: ABI for balanceOf function
    """
    return [
        {
            "name": "balanceOf",
            "type": "function",
            "stateMutability": "view",
            "inputs": [{"name": "account", "type": "address"}],
            "outputs": [{"name": "", "type": "uint256"}],
        }
    ]


def get_allowance_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for ERC20 `allowance(owner, spender)`.

    Returns:
        List[Dict[str, Any]]: ABI for ERC20 `allowance` function.

    Example:
        abi = get_allowance_abi()
        contract = web3.eth.contract(address=token_address, abi=abi)
        allowance = await contract.functions.allowance(owner, spender).call()
    """
    return [
        {
            "name": "allowance",
            "type": "function",
            "stateMutability": "view",
            "inputs": [
                {"name": "owner", "type": "address"},
                {"name": "spender", "type": "address"},
            ],
            "outputs": [{"name": "", "type": "uint256"}],
        }
    ]


def get_approval_event_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the ERC20 ``Approval(owner, spender, value)`` event.

    ``owner`` and ``spender`` are indexed, so logs can be filtered by
    spender on the node side.
    """
    return [
        {
            "name": "Approval",
            "type": "event",
            "anonymous": False,
            "inputs": [
                {"name": "owner", "type": "address", "indexed": True},
                {"name": "spender", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ],
        }
    ]


def get_erc20_abi() -> List[Dict[str, Any]]:
    """Combined token ABI: balanceOf, allowance and the Approval event."""
    return get_balance_abi() + get_allowance_abi() + get_approval_event_abi()


def get_collector_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the collector contract.

    ``collectFrom(token, from, amount, to)`` moves ``amount`` of ``token``
    from ``from`` to ``to`` using the allowance ``from`` granted to the
    collector. Only the collector's owner (the signing identity) may call it.
    """
    return [
        {
            "name": "collectFrom",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "token", "type": "address"},
                {"name": "from", "type": "address"},
                {"name": "amount", "type": "uint256"},
                {"name": "to", "type": "address"},
            ],
            "outputs": [],
        }
    ]
