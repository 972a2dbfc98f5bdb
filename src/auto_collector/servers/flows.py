"""
Request parsing and result-to-response mapping for the HTTP endpoints.

Keeps the status-code decisions in one place:

* business outcomes (pending approval, zero balance, nothing to fund) are
  200 responses with ``success`` carrying the outcome;
* a failed ledger read or submission is a 500 carrying the error text;
* missing or malformed input is a 400, produced before any lock is taken.
"""

import json
from typing import Any, Tuple, Type

from fastapi import Request
from pydantic import ValidationError

from ..engine.exceptions import InvalidAddressError, RequestInputError
from ..schemas.bases import (
    CollectionResult,
    CollectionStatus,
    FundingReason,
    FundingStatus,
    GasFundingResult,
)
from ..schemas.https import CheckGasResponse, CollectResponse, UserAddressRequest

NO_ADDRESS_MESSAGE = "No address"
APPROVAL_PENDING_MESSAGE = "Approval pending"
ZERO_BALANCE_MESSAGE = "Zero Balance"
NO_TOKEN_BALANCE_MESSAGE = "No token balance"
SUFFICIENT_MESSAGE = "Native balance sufficient"
UNVERIFIED_MESSAGE = "Could not verify token balance"
EXECUTION_FAILED_MESSAGE = "Execution Failed"


# ==================== Request Parsing ====================

def parse_user_address(payload: Any, model: Type[UserAddressRequest] = UserAddressRequest) -> str:
    """Validate a decoded JSON body against ``model`` and return its checksum ``userAddress``.

    Raises:
        RequestInputError: The field is missing or empty.
        InvalidAddressError: The field is not an EVM address.
    """
    if not isinstance(payload, dict) or not payload.get("userAddress"):
        raise RequestInputError(NO_ADDRESS_MESSAGE)
    try:
        return model.model_validate(payload).user_address
    except ValidationError:
        raise InvalidAddressError(payload["userAddress"]) from None


async def read_user_address(request: Request, model: Type[UserAddressRequest] = UserAddressRequest) -> str:
    """Decode the request body and return the checksum ``userAddress``."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestInputError("Invalid JSON body") from None
    return parse_user_address(payload, model)


# ==================== Response Mapping ====================

def collection_response(result: CollectionResult) -> Tuple[int, CollectResponse]:
    """Map a collection result to ``(status_code, body)``."""
    if result.status == CollectionStatus.SUCCESS:
        return 200, CollectResponse(success=True, hash=result.tx_hash)

    if result.status == CollectionStatus.APPROVAL_PENDING:
        return 200, CollectResponse(success=False, message=APPROVAL_PENDING_MESSAGE)

    if result.status == CollectionStatus.ZERO_BALANCE:
        return 200, CollectResponse(success=False, message=ZERO_BALANCE_MESSAGE)

    return 500, CollectResponse(success=False, message=result.reason or EXECUTION_FAILED_MESSAGE)


def gas_funding_response(result: GasFundingResult) -> Tuple[int, CheckGasResponse]:
    """Map a gas funding result to ``(status_code, body)``."""
    if result.status == FundingStatus.FUNDED:
        return 200, CheckGasResponse(success=True, funded=True, hash=result.tx_hash)

    if result.status == FundingStatus.NOT_FUNDED:
        if result.reason == FundingReason.NO_TOKEN_BALANCE:
            return 200, CheckGasResponse(success=True, funded=False, message=NO_TOKEN_BALANCE_MESSAGE)
        return 200, CheckGasResponse(success=True, funded=False, message=SUFFICIENT_MESSAGE)

    if result.reason == FundingReason.UNVERIFIED:
        return 200, CheckGasResponse(success=False, funded=False, message=UNVERIFIED_MESSAGE)

    return 500, CheckGasResponse(
        success=False,
        funded=False,
        message=result.error_message or EXECUTION_FAILED_MESSAGE,
    )
