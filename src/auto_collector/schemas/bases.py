"""
Base Schema Models for the auto-collector service

This module defines the value types and result models shared by the
orchestrators, the HTTP layer and the report tool.

Core Classes:
    - CanonicalModel: Pydantic base model with deterministic JSON output
    - ApprovalRecord / ApprovalTimeout: outcomes of approval polling
    - CollectionStatus / CollectionResult: outcome of one collection request
    - FundingStatus / FundingReason / GasFundingResult: outcome of one gas check

Addresses are normalised to EIP-55 checksum form when parsed, so two
addresses that differ only in letter case compare equal.

Dependencies:
    - pydantic: For data validation and serialization
    - web3: For checksum address normalisation
"""

import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from web3 import Web3

from ..engine.exceptions import InvalidAddressError


def to_address(value: Any) -> str:
    """
    Parse ``value`` into a checksum address.

    Raises:
        InvalidAddressError: If ``value`` is not a 20-byte hex string.
    """
    if not isinstance(value, str):
        raise InvalidAddressError(value)
    candidate = value.strip()
    if not Web3.is_address(candidate):
        raise InvalidAddressError(value)
    return Web3.to_checksum_address(candidate)


def _validate_address(value: Any) -> str:
    # pydantic only converts ValueError/AssertionError into ValidationError
    try:
        return to_address(value)
    except InvalidAddressError as e:
        raise ValueError(str(e)) from e


Address = Annotated[str, BeforeValidator(_validate_address)]


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Features:
        - Deterministic key sorting in JSON output
        - No extra whitespace
        - Frozen instances (results are snapshots, never mutated)
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_canonical_json(self) -> str:
        """Convert model to a compact JSON string with sorted keys."""
        data = self.model_dump(mode="json")
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )


# ==================== Approval Polling ====================

class ApprovalRecord(CanonicalModel):
    """
    Snapshot of an ERC-20 allowance read from the ledger.

    Never cached across requests: the owner can change it between polls.

    Attributes:
        owner: Token holder that granted the allowance
        spender: Address allowed to move the owner's tokens
        amount: Allowance in smallest token units
        attempts: Number of reads performed to obtain this snapshot
    """
    owner: Address
    spender: Address
    amount: int = Field(..., ge=0)
    attempts: int = Field(default=1, ge=1)
    observed_at: datetime = Field(default_factory=datetime.now)


class ApprovalTimeout(CanonicalModel):
    """
    Returned when every poll attempt read a zero allowance.

    Distinct from an error: the approval transaction may simply not be
    mined (or visible to the RPC node) yet.
    """
    owner: Address
    spender: Address
    attempts: int = Field(..., ge=0)


# ==================== Collection ====================

class CollectionStatus(str, Enum):
    """
    Terminal outcome of a collection request.

    Attributes:
        SUCCESS: collectFrom transaction was broadcast
        APPROVAL_PENDING: Allowance still zero after the poll budget
        ZERO_BALANCE: User holds no tokens
        FAILURE: A ledger read or the submission failed
    """
    SUCCESS = "success"
    APPROVAL_PENDING = "approval_pending"
    ZERO_BALANCE = "zero_balance"
    FAILURE = "failure"


class CollectionResult(CanonicalModel):
    """
    Result of ``CollectionOrchestrator.collect``.

    ``tx_hash`` is set only for SUCCESS and ``reason`` only for FAILURE.
    The transaction is not confirmed when this result is produced.
    """
    status: CollectionStatus
    user_address: Address
    tx_hash: Optional[str] = None
    amount: Optional[int] = Field(None, ge=0, description="Balance submitted for collection")
    allowance: Optional[int] = Field(None, ge=0, description="Last allowance read")
    reason: Optional[str] = None

    def is_success(self) -> bool:
        return self.status == CollectionStatus.SUCCESS


# ==================== Gas Funding ====================

class FundingStatus(str, Enum):
    """
    Outcome of a gas check.

    Attributes:
        NOT_FUNDED: No transfer was needed or allowed
        FUNDED: A native top-up transfer was broadcast
        ERROR: The check could not be completed
    """
    NOT_FUNDED = "not_funded"
    FUNDED = "funded"
    ERROR = "error"


class FundingReason(str, Enum):
    """Why a gas check ended without funding."""
    NO_TOKEN_BALANCE = "no_token_balance"
    SUFFICIENT = "sufficient"
    UNVERIFIED = "unverified"
    LEDGER_ERROR = "ledger_error"


class GasFundingResult(CanonicalModel):
    """
    Result of ``GasFundingOrchestrator.check_and_fund``.

    Attributes:
        status: NOT_FUNDED, FUNDED or ERROR
        reason: Set for NOT_FUNDED and ERROR
        tx_hash: Set for FUNDED
        token_balance: Token balance read as the anti-abuse gate
        native_balance: Native balance read before deciding
        amount: Native amount sent (FUNDED only)
        error_message: Underlying error text (ERROR only)
    """
    status: FundingStatus
    user_address: Address
    reason: Optional[FundingReason] = None
    tx_hash: Optional[str] = None
    token_balance: Optional[int] = Field(None, ge=0)
    native_balance: Optional[int] = Field(None, ge=0)
    amount: Optional[int] = Field(None, ge=0)
    error_message: Optional[str] = None

    @property
    def funded(self) -> bool:
        return self.status == FundingStatus.FUNDED
