"""
Approval report.

Scans recent ``Approval`` events on the token for a given spender, then
reads the live allowance and balance of every owner found. Read-only: it
never touches the signing queue.

Public RPC endpoints usually cap ``eth_getLogs`` ranges at a few thousand
blocks; lower the block count if the log query is rejected.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..adapters.bases import LedgerClient
from ..adapters.evm.constants import (
    DEFAULT_SCAN_BLOCKS,
    UNLIMITED_ALLOWANCE_THRESHOLD,
    format_amount,
)
from ..adapters.evm.queries import query_erc20_allowance, query_erc20_balance
from ..engine.exceptions import BlockchainInteractionError

logger = logging.getLogger(__name__)

REPORT_WIDTH = 85


@dataclass
class ApprovalReportRow:
    owner: str
    allowance: Optional[int] = None
    balance: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ApprovalReport:
    from_block: int
    to_block: int
    event_count: int
    rows: List[ApprovalReportRow]


def format_allowance(allowance: int, decimals: int, symbol: str) -> str:
    """Display text for an allowance; very large values read as unlimited."""
    if allowance == 0:
        return "0 (Revoked)"
    if allowance > UNLIMITED_ALLOWANCE_THRESHOLD:
        return "UNLIMITED"
    return f"{format_amount(allowance, decimals, places=2)} {symbol}"


class ApprovalScanner:
    """Builds approval reports for one token and one spender.

    Args:
        ledger: Ledger with the token registered (event ABI included)
        token_address: ERC-20 emitting the ``Approval`` events
        spender: Address the approvals were granted to
        decimals: Token decimals, for display
        symbol: Token symbol, for display
    """

    def __init__(
        self,
        ledger: LedgerClient,
        token_address: str,
        spender: str,
        decimals: int = 18,
        symbol: str = "USDT",
    ) -> None:
        self.ledger = ledger
        self.token_address = token_address
        self.spender = spender
        self.decimals = decimals
        self.symbol = symbol

    async def find_owners(self, from_block: int, to_block: int) -> tuple[int, List[str]]:
        """Return ``(event_count, owners)``, owners de-duplicated in first-seen order."""
        events = await self.ledger.get_event_logs(
            self.token_address,
            "Approval",
            argument_filters={"spender": self.spender},
            from_block=from_block,
            to_block=to_block,
        )
        owners = list(dict.fromkeys(event["owner"] for event in events))
        return len(events), owners

    async def inspect_owner(self, owner: str) -> ApprovalReportRow:
        """Read allowance and balance of ``owner`` concurrently.

        Both reads always run to completion. A ledger error in either one
        yields an error row; any other exception propagates.
        """
        results = await asyncio.gather(
            query_erc20_allowance(self.ledger, self.token_address, owner, self.spender),
            query_erc20_balance(self.ledger, self.token_address, owner),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception) and not isinstance(result, BlockchainInteractionError):
                raise result

        errors = [r for r in results if isinstance(r, BlockchainInteractionError)]
        if errors:
            logger.debug("Failed to read state of %s: %s", owner, errors[0])
            return ApprovalReportRow(owner=owner, error=str(errors[0]))

        allowance, balance = results
        return ApprovalReportRow(owner=owner, allowance=allowance, balance=balance)

    async def scan(self, blocks: int = DEFAULT_SCAN_BLOCKS) -> ApprovalReport:
        """Scan the last ``blocks`` blocks and inspect every owner found.

        Raises:
            BlockchainInteractionError: The block number or log query failed.
        """
        to_block = await self.ledger.get_block_number()
        from_block = max(to_block - blocks, 0)
        logger.info("Scanning blocks %d to %d for spender %s", from_block, to_block, self.spender)

        event_count, owners = await self.find_owners(from_block, to_block)
        logger.info("Found %d approval events from %d unique owners", event_count, len(owners))

        rows = [await self.inspect_owner(owner) for owner in owners]
        return ApprovalReport(
            from_block=from_block,
            to_block=to_block,
            event_count=event_count,
            rows=rows,
        )

    def format_row(self, row: ApprovalReportRow) -> str:
        if row.error is not None:
            return f"{row.owner} | Error fetching data"
        allowance_text = format_allowance(row.allowance, self.decimals, self.symbol)
        balance_text = format_amount(row.balance, self.decimals, places=2)
        return f"{row.owner} | {allowance_text.ljust(18)} | {balance_text} {self.symbol}"

    def format_report(self, report: ApprovalReport) -> str:
        """Render the report as a fixed-width text table."""
        lines = [
            f"Scanned blocks {report.from_block} to {report.to_block}",
            f"Approval events: {report.event_count}",
            f"Unique owners: {len(report.rows)}",
            "",
            f"{'User Address'.ljust(42)} | {'Approved Amount'.ljust(18)} | Current {self.symbol} Balance",
            "-" * REPORT_WIDTH,
        ]
        lines.extend(self.format_row(row) for row in report.rows)
        lines.append("-" * REPORT_WIDTH)
        return "\n".join(lines)
