"""
Approval Poller Test Suite

Covers bounded allowance polling: early return on the first non-zero read,
timeout after the configured number of reads, error propagation and the
worst-case wait.
"""

import time
from unittest.mock import AsyncMock, patch

import pytest

from ledger_mocks import (
    MOCK_COLLECTOR_ADDRESS,
    MOCK_USER_ADDRESS,
    ONE_TOKEN,
    MockLedger,
    create_poller,
    read_failure,
)

from auto_collector.engine.exceptions import BlockchainInteractionError
from auto_collector.engine.poller import ApprovalPoller
from auto_collector.schemas.bases import ApprovalRecord, ApprovalTimeout


class TestApprovalPoller:

    @pytest.mark.asyncio
    async def test_returns_on_first_non_zero_read(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, 1000 * ONE_TOKEN)

        result = await create_poller(ledger, max_attempts=5).poll(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)

        assert isinstance(result, ApprovalRecord)
        assert result.amount == 1000 * ONE_TOKEN
        assert result.attempts == 1
        assert ledger.allowance_reads() == 1

    @pytest.mark.asyncio
    async def test_allowance_becomes_visible_on_later_attempt(self):
        ledger = MockLedger()
        ledger.allowance_sequence = [0, 0, 7 * ONE_TOKEN]

        result = await create_poller(ledger, max_attempts=5).poll(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)

        assert isinstance(result, ApprovalRecord)
        assert result.amount == 7 * ONE_TOKEN
        assert result.attempts == 3

    @pytest.mark.asyncio
    async def test_timeout_after_exactly_max_attempts(self):
        ledger = MockLedger()

        result = await create_poller(ledger, max_attempts=4).poll(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)

        assert isinstance(result, ApprovalTimeout)
        assert result.attempts == 4
        assert ledger.allowance_reads() == 4

    @pytest.mark.asyncio
    async def test_sleeps_only_between_attempts(self):
        ledger = MockLedger()
        poller = create_poller(ledger, max_attempts=3, interval=2.0)

        with patch("auto_collector.engine.poller.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            await poller.poll(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)

        # MockLedger reads also await asyncio.sleep(0); only interval waits count
        interval_waits = [c.args for c in mock_sleep.await_args_list].count((2.0,))
        assert interval_waits == 2

    @pytest.mark.asyncio
    async def test_single_attempt_never_waits(self):
        ledger = MockLedger()
        poller = create_poller(ledger, max_attempts=1, interval=2.0)

        with patch("auto_collector.engine.poller.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            result = await poller.poll(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)

        assert isinstance(result, ApprovalTimeout)
        assert (2.0,) not in [c.args for c in mock_sleep.await_args_list]

    @pytest.mark.asyncio
    async def test_read_error_propagates_without_retry(self):
        ledger = MockLedger()
        ledger.read_errors["allowance"] = read_failure("connection reset")

        with pytest.raises(BlockchainInteractionError, match="connection reset"):
            await create_poller(ledger, max_attempts=5).poll(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)

        assert ledger.allowance_reads() == 1

    @pytest.mark.asyncio
    async def test_worst_case_wait_is_bounded(self):
        ledger = MockLedger()
        poller = create_poller(ledger, max_attempts=3, interval=0.05)

        started = time.monotonic()
        await poller.poll(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)
        elapsed = time.monotonic() - started

        assert 0.09 <= elapsed < 1.0

    def test_rejects_invalid_budget(self):
        ledger = MockLedger()
        with pytest.raises(ValueError):
            ApprovalPoller(ledger, "0x55d398326f99059fF775485246999027B3197955", max_attempts=0)
        with pytest.raises(ValueError):
            ApprovalPoller(ledger, "0x55d398326f99059fF775485246999027B3197955", interval=-1)
