"""Tests for the ERC-20 read helpers and their response validation."""

import pytest

from ledger_mocks import (
    MOCK_COLLECTOR_ADDRESS,
    MOCK_TOKEN_ADDRESS,
    MOCK_USER_ADDRESS,
    ONE_TOKEN,
    MalformedViewLedger,
    MockLedger,
)

from auto_collector.adapters.evm.queries import query_erc20_allowance, query_erc20_balance
from auto_collector.engine.exceptions import BlockchainInteractionError


class TestQueries:

    @pytest.mark.asyncio
    async def test_reads_integers(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, 3 * ONE_TOKEN)
        ledger.set_balance(MOCK_USER_ADDRESS, 2**256 - 1)

        assert await query_erc20_allowance(
            ledger, MOCK_TOKEN_ADDRESS, MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS
        ) == 3 * ONE_TOKEN
        assert await query_erc20_balance(ledger, MOCK_TOKEN_ADDRESS, MOCK_USER_ADDRESS) == 2**256 - 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, "500", 1.5, -1, True, b"\x01"])
    async def test_malformed_balance(self, value):
        ledger = MalformedViewLedger(value)

        with pytest.raises(BlockchainInteractionError, match="Malformed balanceOf response"):
            await query_erc20_balance(ledger, MOCK_TOKEN_ADDRESS, MOCK_USER_ADDRESS)

    @pytest.mark.asyncio
    async def test_malformed_allowance(self):
        ledger = MalformedViewLedger(None)

        with pytest.raises(BlockchainInteractionError, match="Malformed allowance response: None"):
            await query_erc20_allowance(ledger, MOCK_TOKEN_ADDRESS, MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS)
