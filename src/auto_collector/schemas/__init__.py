from .bases import (
    Address,
    ApprovalRecord,
    ApprovalTimeout,
    CanonicalModel,
    CollectionResult,
    CollectionStatus,
    FundingReason,
    FundingStatus,
    GasFundingResult,
    to_address,
)
from .https import CheckGasRequest, CheckGasResponse, CollectRequest, CollectResponse

__all__ = [
    "Address",
    "ApprovalRecord",
    "ApprovalTimeout",
    "CanonicalModel",
    "CollectionResult",
    "CollectionStatus",
    "FundingReason",
    "FundingStatus",
    "GasFundingResult",
    "to_address",
    "CheckGasRequest",
    "CheckGasResponse",
    "CollectRequest",
    "CollectResponse",
]
