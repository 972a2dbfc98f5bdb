"""
Orchestrator Test Suite

Collection: approval gate, zero balance, full-balance collectFrom and
ledger failures. Gas funding: token gate, threshold, exact top-up amount,
idempotence and the two error flavours.
"""

import pytest

from ledger_mocks import (
    MOCK_COLLECTOR_ADDRESS,
    MOCK_DESTINATION_ADDRESS,
    MOCK_TOKEN_ADDRESS,
    MOCK_TOPUP,
    MOCK_USER_ADDRESS,
    ONE_TOKEN,
    MalformedViewLedger,
    MockLedger,
    create_collection,
    create_gas_funding,
    read_failure,
    send_failure,
)

from auto_collector.engine.orchestrators import GasFundingOrchestrator
from auto_collector.schemas.bases import CollectionStatus, FundingReason, FundingStatus


# ========================================================================
# Collection
# ========================================================================

class TestCollectionOrchestrator:

    @pytest.mark.asyncio
    async def test_collects_full_balance_to_destination(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, 1000 * ONE_TOKEN)
        ledger.set_balance(MOCK_USER_ADDRESS, 500 * ONE_TOKEN)

        result = await create_collection(ledger).collect(MOCK_USER_ADDRESS)

        assert result.is_success()
        assert result.tx_hash.startswith("0x")
        assert result.amount == 500 * ONE_TOKEN
        assert result.allowance == 1000 * ONE_TOKEN
        assert ledger.contract_calls == [(
            MOCK_COLLECTOR_ADDRESS,
            "collectFrom",
            [MOCK_TOKEN_ADDRESS, MOCK_USER_ADDRESS, 500 * ONE_TOKEN, MOCK_DESTINATION_ADDRESS],
        )]

    @pytest.mark.asyncio
    async def test_amount_not_capped_by_allowance(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, 1)
        ledger.set_balance(MOCK_USER_ADDRESS, 42 * ONE_TOKEN)

        result = await create_collection(ledger).collect(MOCK_USER_ADDRESS)

        assert result.status == CollectionStatus.SUCCESS
        assert ledger.contract_calls[0][2][2] == 42 * ONE_TOKEN

    @pytest.mark.asyncio
    async def test_approval_pending_without_submission(self):
        ledger = MockLedger()
        ledger.set_balance(MOCK_USER_ADDRESS, 500 * ONE_TOKEN)

        result = await create_collection(ledger, max_attempts=3).collect(MOCK_USER_ADDRESS)

        assert result.status == CollectionStatus.APPROVAL_PENDING
        assert result.allowance == 0
        assert ledger.allowance_reads() == 3
        assert ledger.contract_calls == []

    @pytest.mark.asyncio
    async def test_zero_balance_without_submission(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, 1000 * ONE_TOKEN)

        result = await create_collection(ledger).collect(MOCK_USER_ADDRESS)

        assert result.status == CollectionStatus.ZERO_BALANCE
        assert result.amount == 0
        assert ledger.contract_calls == []

    @pytest.mark.asyncio
    async def test_lowercase_address_is_normalised(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, ONE_TOKEN)
        ledger.set_balance(MOCK_USER_ADDRESS, ONE_TOKEN)

        result = await create_collection(ledger).collect(MOCK_USER_ADDRESS.lower())

        assert result.user_address == MOCK_USER_ADDRESS
        assert result.is_success()

    @pytest.mark.asyncio
    async def test_balance_read_failure(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, ONE_TOKEN)
        ledger.read_errors["balanceOf"] = read_failure("header not found")

        result = await create_collection(ledger).collect(MOCK_USER_ADDRESS)

        assert result.status == CollectionStatus.FAILURE
        assert result.reason == "header not found"
        assert ledger.contract_calls == []

    @pytest.mark.asyncio
    async def test_allowance_read_failure(self):
        ledger = MockLedger()
        ledger.read_errors["allowance"] = read_failure("rate limited")

        result = await create_collection(ledger).collect(MOCK_USER_ADDRESS)

        assert result.status == CollectionStatus.FAILURE
        assert result.reason == "rate limited"

    @pytest.mark.asyncio
    async def test_submission_failure_keeps_message(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, ONE_TOKEN)
        ledger.set_balance(MOCK_USER_ADDRESS, ONE_TOKEN)
        ledger.send_error = send_failure("execution reverted: ERC20: insufficient allowance")

        result = await create_collection(ledger).collect(MOCK_USER_ADDRESS)

        assert result.status == CollectionStatus.FAILURE
        assert result.reason == "execution reverted: ERC20: insufficient allowance"
        assert result.tx_hash is None

    @pytest.mark.asyncio
    async def test_repeat_after_success_reports_zero_balance(self):
        ledger = MockLedger()
        ledger.set_allowance(MOCK_USER_ADDRESS, MOCK_COLLECTOR_ADDRESS, 1000 * ONE_TOKEN)
        ledger.set_balance(MOCK_USER_ADDRESS, 500 * ONE_TOKEN)
        orchestrator = create_collection(ledger)

        first = await orchestrator.collect(MOCK_USER_ADDRESS)
        second = await orchestrator.collect(MOCK_USER_ADDRESS)

        assert first.is_success()
        assert second.status == CollectionStatus.ZERO_BALANCE
        assert len(ledger.contract_calls) == 1


# ========================================================================
# Gas Funding
# ========================================================================

class TestGasFundingOrchestrator:

    @pytest.mark.asyncio
    async def test_funds_exact_topup_amount(self):
        ledger = MockLedger()
        ledger.set_balance(MOCK_USER_ADDRESS, 10 * ONE_TOKEN)

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert result.funded
        assert result.status == FundingStatus.FUNDED
        assert result.amount == MOCK_TOPUP
        assert result.native_balance == 0
        assert ledger.transfers == [(MOCK_USER_ADDRESS, 40000000000000)]

    @pytest.mark.asyncio
    async def test_no_token_balance_is_never_funded(self):
        ledger = MockLedger()

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert not result.funded
        assert result.status == FundingStatus.NOT_FUNDED
        assert result.reason == FundingReason.NO_TOKEN_BALANCE
        assert ledger.transfers == []

    @pytest.mark.asyncio
    async def test_balance_at_threshold_is_sufficient(self):
        ledger = MockLedger()
        ledger.set_balance(MOCK_USER_ADDRESS, ONE_TOKEN)
        ledger.set_native_balance(MOCK_USER_ADDRESS, MOCK_TOPUP)

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert result.status == FundingStatus.NOT_FUNDED
        assert result.reason == FundingReason.SUFFICIENT
        assert ledger.transfers == []

    @pytest.mark.asyncio
    async def test_balance_just_below_threshold_is_funded(self):
        ledger = MockLedger()
        ledger.set_balance(MOCK_USER_ADDRESS, ONE_TOKEN)
        ledger.set_native_balance(MOCK_USER_ADDRESS, MOCK_TOPUP - 1)

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert result.funded

    @pytest.mark.asyncio
    async def test_second_check_after_funding_is_sufficient(self):
        ledger = MockLedger()
        ledger.set_balance(MOCK_USER_ADDRESS, ONE_TOKEN)
        orchestrator = create_gas_funding(ledger)

        first = await orchestrator.check_and_fund(MOCK_USER_ADDRESS)
        second = await orchestrator.check_and_fund(MOCK_USER_ADDRESS)

        assert first.funded
        assert second.reason == FundingReason.SUFFICIENT
        assert len(ledger.transfers) == 1

    @pytest.mark.asyncio
    async def test_unverifiable_token_balance(self):
        ledger = MockLedger()
        ledger.read_errors["balanceOf"] = read_failure("timeout")

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert result.status == FundingStatus.ERROR
        assert result.reason == FundingReason.UNVERIFIED
        assert result.error_message == "timeout"
        assert ledger.transfers == []

    @pytest.mark.asyncio
    async def test_malformed_token_balance_is_unverified(self):
        ledger = MalformedViewLedger(None)

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert result.status == FundingStatus.ERROR
        assert result.reason == FundingReason.UNVERIFIED
        assert "Malformed balanceOf response" in result.error_message
        assert ledger.transfers == []

    @pytest.mark.asyncio
    async def test_native_balance_read_failure(self):
        ledger = MockLedger()
        ledger.set_balance(MOCK_USER_ADDRESS, ONE_TOKEN)
        ledger.native_error = read_failure("bad gateway")

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert result.status == FundingStatus.ERROR
        assert result.reason == FundingReason.LEDGER_ERROR
        assert result.error_message == "bad gateway"

    @pytest.mark.asyncio
    async def test_transfer_failure(self):
        ledger = MockLedger()
        ledger.set_balance(MOCK_USER_ADDRESS, ONE_TOKEN)
        ledger.send_error = send_failure()

        result = await create_gas_funding(ledger).check_and_fund(MOCK_USER_ADDRESS)

        assert result.status == FundingStatus.ERROR
        assert result.reason == FundingReason.LEDGER_ERROR
        assert "insufficient funds" in result.error_message

    def test_rejects_non_positive_topup(self):
        with pytest.raises(ValueError):
            GasFundingOrchestrator(MockLedger(), token_address=MOCK_TOKEN_ADDRESS, topup_amount=0)
