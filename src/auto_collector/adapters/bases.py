"""
Abstract Base Class for Ledger Clients

Defines the interface the orchestrators and the approval report consume.
The orchestrators never touch RPC transport, ABI encoding or signing
directly; they only see the capabilities listed here.

Core Classes:
    - LedgerClient: read views, read native balances, submit signed
      transactions from the single signing identity, enumerate event logs

All methods are coroutines; the caller suspends until each completes.
Implementations raise ``BlockchainInteractionError`` for read failures and
``TransactionExecutionError`` for submission failures, with the underlying
message preserved.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence


class LedgerClient(ABC):
    """
    Abstract ledger access for one blockchain network and one signing key.

    Key Responsibilities:
    1. read_view: Call a contract view function
    2. get_native_balance: Read a native-currency balance
    3. send_transaction: Submit a plain value transfer
    4. send_contract_call: Submit a state-changing contract call
    5. get_block_number / get_event_logs: Historical event enumeration

    Submitting methods must only be invoked while holding the process-wide
    ``SigningQueue``; the implementation reads the signer's nonce from the
    node on every call and keeps no sequence state of its own.
    """

    @property
    @abstractmethod
    def signer_address(self) -> str:
        """Checksum address of the signing identity."""
        pass

    @staticmethod
    @abstractmethod
    def derive_address(private_key: str) -> str:
        """
        Derive the checksum address controlled by ``private_key``.

        Raises:
            ValueError: If the key is malformed.
        """
        pass

    @abstractmethod
    async def read_view(self, contract: str, method: str, args: Sequence[Any] = ()) -> Any:
        """
        Call a view function on a registered contract.

        Args:
            contract: Contract address
            method: Function name (e.g. ``"balanceOf"``)
            args: Positional arguments

        Returns:
            The decoded return value.
        """
        pass

    @abstractmethod
    async def get_native_balance(self, address: str) -> int:
        """Native-currency balance of ``address`` in smallest units."""
        pass

    @abstractmethod
    async def send_transaction(self, to: str, value: int) -> str:
        """
        Sign and broadcast a plain value transfer from the signing identity.

        Returns:
            str: 0x-prefixed transaction hash (not yet confirmed)
        """
        pass

    @abstractmethod
    async def send_contract_call(self, contract: str, method: str, args: Sequence[Any] = ()) -> str:
        """
        Sign and broadcast a state-changing call on a registered contract.

        Returns:
            str: 0x-prefixed transaction hash (not yet confirmed)
        """
        pass

    @abstractmethod
    async def get_block_number(self) -> int:
        """Latest block number."""
        pass

    @abstractmethod
    async def get_event_logs(
        self,
        contract: str,
        event: str,
        argument_filters: Optional[Dict[str, Any]] = None,
        from_block: Optional[int] = None,
        to_block: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Enumerate historical events emitted by a registered contract.

        Args:
            contract: Contract address
            event: Event name (e.g. ``"Approval"``)
            argument_filters: Indexed argument values to match
            from_block: First block (inclusive)
            to_block: Last block (inclusive)

        Returns:
            List of decoded event argument dicts, in log order.
        """
        pass
