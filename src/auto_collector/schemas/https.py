"""
HTTP Request/Response Schema Models for the auto-collector service

Pydantic models for the JSON bodies exchanged on ``/collect`` and
``/check-gas``. Field names use the camelCase aliases the web client sends
(``userAddress``); responses omit fields that are ``None``.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .bases import Address


# ============================================================================
# Requests
# ============================================================================

class UserAddressRequest(BaseModel):
    """Request body carrying the user's wallet address.

    Attributes:
        user_address: Address to inspect, normalised to checksum form.
    """
    model_config = ConfigDict(populate_by_name=True)
    user_address: Address = Field(..., alias="userAddress")


class CollectRequest(UserAddressRequest):
    """Body of ``POST /collect``."""
    pass


class CheckGasRequest(UserAddressRequest):
    """Body of ``POST /check-gas``."""
    pass


# ============================================================================
# Responses
# ============================================================================

class CollectResponse(BaseModel):
    """Body returned by ``POST /collect``.

    Attributes:
        success: True only when a collection transaction was broadcast.
        hash: Transaction hash (unconfirmed) on success.
        message: Human-readable reason when ``success`` is False.
    """
    success: bool
    hash: Optional[str] = None
    message: Optional[str] = None


class CheckGasResponse(BaseModel):
    """Body returned by ``POST /check-gas``.

    Attributes:
        success: False when the check itself could not be completed.
        funded: True when a native top-up transaction was broadcast.
        hash: Top-up transaction hash when ``funded``.
        message: Reason when nothing was funded.
    """
    success: bool
    funded: bool = False
    hash: Optional[str] = None
    message: Optional[str] = None
