"""
EVM Ledger Client

Implements ``LedgerClient`` on top of web3.py for a single EVM network and
a single signing key.

Key Features:
    - View calls on registered contracts (token balance, allowance)
    - Native balance queries
    - Locally signed contract calls and value transfers (no receipt wait)
    - Historical event enumeration for the approval report

Dependencies:
    - web3.py: For blockchain RPC interaction
    - eth_account: For key handling and transaction signing
"""

from typing import Any, Dict, List, Optional, Sequence

from aiohttp import ClientTimeout
from eth_account import Account
from web3 import AsyncWeb3

from ...engine.exceptions import (
    BlockchainInteractionError,
    ConfigurationError,
    TransactionExecutionError,
)
from ..bases import LedgerClient

#: Safety margin applied to node gas estimates.
_GAS_MARGIN: float = 1.1


def normalize_private_key(private_key: str) -> str:
    """Return ``private_key`` stripped and 0x-prefixed."""
    key = private_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    return key


class EVMLedgerClient(LedgerClient):
    """
    EVM ledger client bound to one RPC endpoint and one signing key.

    Contracts must be registered with their ABI before they can be read or
    called; lookups are case-insensitive on the address.

    Transaction sequence state is not cached: the nonce is read from the
    node (``pending`` tag) for every submission. Callers serialize
    submissions through ``SigningQueue`` so two submissions never race for
    the same nonce.

    Attributes:
        account: Signing account built from the private key (None when read-only)
        chain_id: Chain id stamped into every signed transaction

    Example:
        ledger = EVMLedgerClient(private_key="0x...", rpc_url="https://bsc-dataseed.binance.org", chain_id=56)
        ledger.register_contract(token, get_erc20_abi())
        balance = await ledger.read_view(token, "balanceOf", [user])
    """

    def __init__(
        self,
        private_key: Optional[str],
        rpc_url: str,
        chain_id: int,
        request_timeout: int = 60,
        contracts: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ):
        """
        Initialize the client.

        Args:
            private_key: Signing key, with or without 0x prefix. None gives a
                read-only client whose submissions fail.
            rpc_url: JSON-RPC endpoint URL
            chain_id: EVM chain id (56 for BNB Smart Chain)
            request_timeout: Per-request HTTP timeout in seconds
            contracts: Optional mapping of contract address to ABI

        Raises:
            ValueError: If the private key is malformed.
        """
        self.account = None
        self._signer_address: Optional[str] = None
        if private_key:
            self.account = Account.from_key(normalize_private_key(private_key))
            self._signer_address = AsyncWeb3.to_checksum_address(self.account.address)
        self.chain_id = chain_id
        self._rpc_url = rpc_url
        self._request_timeout = request_timeout
        self._abis: Dict[str, List[Dict[str, Any]]] = {}
        self._web3: Optional[AsyncWeb3] = None

        for address, abi in (contracts or {}).items():
            self.register_contract(address, abi)

    @property
    def signer_address(self) -> str:
        if self._signer_address is None:
            raise ConfigurationError("Ledger client has no signing key")
        return self._signer_address

    @staticmethod
    def derive_address(private_key: str) -> str:
        account = Account.from_key(normalize_private_key(private_key))
        return AsyncWeb3.to_checksum_address(account.address)

    def register_contract(self, address: str, abi: List[Dict[str, Any]]) -> None:
        """Register (or extend) the ABI used for ``address``."""
        key = address.lower()
        self._abis[key] = self._abis.get(key, []) + list(abi)

    def _get_web3_instance(self) -> AsyncWeb3:
        """Create the AsyncWeb3 instance on first use and reuse it afterwards."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
                self._rpc_url,
                request_kwargs={"timeout": ClientTimeout(total=self._request_timeout)}
            ))
        return self._web3

    def _contract(self, web3: AsyncWeb3, address: str):
        abi = self._abis.get(address.lower())
        if abi is None:
            raise BlockchainInteractionError(f"Contract {address} is not registered")
        return web3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=abi)

    async def read_view(self, contract: str, method: str, args: Sequence[Any] = ()) -> Any:
        web3 = self._get_web3_instance()
        instance = self._contract(web3, contract)
        try:
            return await getattr(instance.functions, method)(*args).call()
        except Exception as e:
            raise BlockchainInteractionError(str(e)) from e

    async def get_native_balance(self, address: str) -> int:
        web3 = self._get_web3_instance()
        try:
            balance = await web3.eth.get_balance(AsyncWeb3.to_checksum_address(address))
            return int(balance)
        except Exception as e:
            raise BlockchainInteractionError(str(e)) from e

    async def send_transaction(self, to: str, value: int) -> str:
        web3 = self._get_web3_instance()
        try:
            recipient = AsyncWeb3.to_checksum_address(to)
            gas_estimate = await web3.eth.estimate_gas({
                "from": self.signer_address,
                "to": recipient,
                "value": value,
            })
            tx_dict = {
                "from": self.signer_address,
                "to": recipient,
                "value": value,
                "gas": gas_estimate,
                "gasPrice": await web3.eth.gas_price,
                "nonce": await web3.eth.get_transaction_count(self.signer_address, "pending"),
                "chainId": self.chain_id,
            }
            return await self._sign_and_send(web3, tx_dict)
        except Exception as e:
            raise TransactionExecutionError(str(e)) from e

    async def send_contract_call(self, contract: str, method: str, args: Sequence[Any] = ()) -> str:
        web3 = self._get_web3_instance()
        instance = self._contract(web3, contract)
        try:
            tx_fn = getattr(instance.functions, method)(*args)

            gas_estimate = await tx_fn.estimate_gas({"from": self.signer_address})
            gas_price = await web3.eth.gas_price
            tx_nonce = await web3.eth.get_transaction_count(self.signer_address, "pending")

            tx_dict = await tx_fn.build_transaction({
                "from": self.signer_address,
                "gas": int(gas_estimate * _GAS_MARGIN),
                "gasPrice": gas_price,
                "nonce": tx_nonce,
                "chainId": self.chain_id,
            })
            return await self._sign_and_send(web3, tx_dict)
        except Exception as e:
            raise TransactionExecutionError(str(e)) from e

    async def _sign_and_send(self, web3: AsyncWeb3, tx_dict: Dict[str, Any]) -> str:
        """Sign locally and broadcast via ``eth_sendRawTransaction``."""
        signed_tx = self.account.sign_transaction(tx_dict)
        tx_hash = await web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        return AsyncWeb3.to_hex(tx_hash)

    async def get_block_number(self) -> int:
        web3 = self._get_web3_instance()
        try:
            return int(await web3.eth.block_number)
        except Exception as e:
            raise BlockchainInteractionError(str(e)) from e

    async def get_event_logs(
        self,
        contract: str,
        event: str,
        argument_filters: Optional[Dict[str, Any]] = None,
        from_block: Optional[int] = None,
        to_block: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        web3 = self._get_web3_instance()
        instance = self._contract(web3, contract)
        try:
            logs = await getattr(instance.events, event)().get_logs(
                argument_filters=argument_filters,
                from_block=from_block,
                to_block=to_block,
            )
            return [dict(log["args"]) for log in logs]
        except Exception as e:
            raise BlockchainInteractionError(str(e)) from e
