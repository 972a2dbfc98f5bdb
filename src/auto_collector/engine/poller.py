"""
Approval poller.

An approval transaction mined moments ago may not yet be visible to the RPC
node serving our reads, so the allowance is re-read a bounded number of
times before the request is reported as pending.
"""

import asyncio
import logging
from typing import Union

from ..adapters.bases import LedgerClient
from ..adapters.evm.queries import query_erc20_allowance
from ..schemas.bases import ApprovalRecord, ApprovalTimeout

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_INTERVAL = 2.0


class ApprovalPoller:
    """Bounded allowance polling for one token.

    Worst-case latency is ``(max_attempts - 1) * interval`` plus the read
    times, which bounds how long the signing queue can be held by a request
    waiting for an approval.

    Args:
        ledger: Ledger with the token registered
        token_address: ERC-20 whose allowance is read
        max_attempts: Number of reads before giving up
        interval: Seconds to wait between reads
    """

    def __init__(
        self,
        ledger: LedgerClient,
        token_address: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if interval < 0:
            raise ValueError("interval must be non-negative")
        self.ledger = ledger
        self.token_address = token_address
        self.max_attempts = max_attempts
        self.interval = interval

    async def poll(self, owner: str, spender: str) -> Union[ApprovalRecord, ApprovalTimeout]:
        """Read the allowance of (owner, spender) until it is non-zero.

        Returns:
            ``ApprovalRecord`` for the first non-zero read, otherwise
            ``ApprovalTimeout`` once every attempt has read zero.

        Raises:
            BlockchainInteractionError: A read failed. Read errors are not
                retried.
        """
        for attempt in range(1, self.max_attempts + 1):
            allowance = await query_erc20_allowance(self.ledger, self.token_address, owner, spender)
            if allowance > 0:
                return ApprovalRecord(owner=owner, spender=spender, amount=allowance, attempts=attempt)

            if attempt < self.max_attempts:
                logger.info(
                    "Waiting for allowance sync (%s, attempt %d/%d)",
                    owner, attempt, self.max_attempts,
                )
                await asyncio.sleep(self.interval)

        return ApprovalTimeout(owner=owner, spender=spender, attempts=self.max_attempts)
