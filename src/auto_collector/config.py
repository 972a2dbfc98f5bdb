"""
Service configuration loaded from environment variables (and a ``.env`` file).

``load_settings`` fails fast with ``ConfigurationError`` when the signing
key, the collector contract or the destination wallet is missing or
malformed, so the server never starts in a state where every collection
would revert.
"""

import logging
import os
from typing import List, Mapping, Optional

import dotenv
from pydantic import BaseModel, Field, ValidationError

from .adapters.evm.adapter import EVMLedgerClient, normalize_private_key
from .adapters.evm.constants import (
    DEFAULT_CHAIN,
    DEFAULT_GAS_TOPUP,
    DEFAULT_TOKEN,
    NATIVE_DECIMALS,
    amount_to_value,
)
from .engine.exceptions import ConfigurationError
from .engine.poller import DEFAULT_INTERVAL, DEFAULT_MAX_ATTEMPTS
from .schemas.bases import Address

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = ["https://bsc20.netlify.app", "http://localhost:5173"]


class CollectorSettings(BaseModel):
    """Runtime settings for the collector service and the report tool."""
    rpc_url: str = Field(default=DEFAULT_CHAIN.public_rpc_url, description="JSON-RPC endpoint")
    chain_id: int = Field(default=DEFAULT_CHAIN.chain_id)
    token_address: Address = Field(default=DEFAULT_TOKEN.address, description="ERC-20 being collected")
    token_decimals: int = Field(default=DEFAULT_TOKEN.decimals, ge=0)
    token_symbol: str = Field(default=DEFAULT_TOKEN.symbol)
    collector_address: Address = Field(..., description="Collector contract (approved spender)")
    destination_address: Optional[Address] = Field(None, description="Receiver of collected tokens")
    private_key: Optional[str] = Field(None, repr=False)
    poll_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)
    poll_interval: float = Field(default=DEFAULT_INTERVAL, ge=0)
    gas_topup_amount: int = Field(
        default=amount_to_value(amount=DEFAULT_GAS_TOPUP, decimals=NATIVE_DECIMALS),
        gt=0,
        description="Native threshold and top-up amount in smallest units",
    )
    request_timeout: int = Field(default=60, gt=0)
    explorer_url: str = Field(default=DEFAULT_CHAIN.explorer_url)
    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    host: str = "0.0.0.0"
    port: int = 3001
    scan_rpc_url: Optional[str] = Field(None, description="Endpoint for the approval report")

    def require_signer(self) -> None:
        """Raise ``ConfigurationError`` unless the settings can sign collections."""
        if not self.private_key:
            raise ConfigurationError("PRIVATE_KEY is not set")
        if not self.destination_address:
            raise ConfigurationError("DESTINATION_WALLET is not set")


_ENV_FIELDS = {
    "RPC_URL": "rpc_url",
    "CHAIN_ID": "chain_id",
    "TOKEN_ADDRESS": "token_address",
    "TOKEN_DECIMALS": "token_decimals",
    "TOKEN_SYMBOL": "token_symbol",
    "CONTRACT_ADDRESS": "collector_address",
    "DESTINATION_WALLET": "destination_address",
    "APPROVAL_POLL_ATTEMPTS": "poll_attempts",
    "APPROVAL_POLL_INTERVAL": "poll_interval",
    "RPC_REQUEST_TIMEOUT": "request_timeout",
    "EXPLORER_URL": "explorer_url",
    "HOST": "host",
    "PORT": "port",
    "SCAN_RPC_URL": "scan_rpc_url",
}


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    require_signer: bool = True,
    env_file: Optional[str] = None,
) -> CollectorSettings:
    """Build ``CollectorSettings`` from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ`` (no ``.env`` is
            loaded in that case)
        require_signer: Also require ``PRIVATE_KEY`` and ``DESTINATION_WALLET``
        env_file: Explicit ``.env`` path; defaults to searching from the cwd

    Raises:
        ConfigurationError: Missing or invalid values.
    """
    if environ is None:
        dotenv.load_dotenv(dotenv_path=env_file)
        environ = os.environ

    raw = {}
    for env_name, field in _ENV_FIELDS.items():
        value = environ.get(env_name)
        if value not in (None, ""):
            raw[field] = value

    if "collector_address" not in raw:
        raise ConfigurationError("CONTRACT_ADDRESS is not set")

    if origins := environ.get("CORS_ORIGINS"):
        raw["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

    if topup := environ.get("GAS_TOPUP_AMOUNT"):
        try:
            raw["gas_topup_amount"] = amount_to_value(amount=topup, decimals=NATIVE_DECIMALS)
        except ValueError as e:
            raise ConfigurationError(f"GAS_TOPUP_AMOUNT: {e}") from e

    if private_key := environ.get("PRIVATE_KEY"):
        raw["private_key"] = normalize_private_key(private_key)
        try:
            EVMLedgerClient.derive_address(raw["private_key"])
        except Exception:
            # the key itself must never reach the log
            raise ConfigurationError("PRIVATE_KEY is malformed") from None

    try:
        settings = CollectorSettings(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if require_signer:
        settings.require_signer()

    logger.info("Collector contract: %s", settings.collector_address)
    logger.info("Destination: %s", settings.destination_address)
    logger.info("Private key: %s", "present" if settings.private_key else "MISSING")
    return settings
