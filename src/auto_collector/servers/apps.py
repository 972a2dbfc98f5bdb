"""
Auto-collector HTTP server - FastAPI wrapper around the orchestrators.

Every orchestrator run goes through the server's ``SigningQueue``; input
validation happens before the queue is entered.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from ..adapters.bases import LedgerClient
from ..adapters.evm.adapter import EVMLedgerClient
from ..adapters.evm.ERC20_ABI import get_collector_abi, get_erc20_abi
from ..config import CollectorSettings
from ..engine.exceptions import RequestInputError
from ..engine.orchestrators import CollectionOrchestrator, GasFundingOrchestrator
from ..engine.poller import ApprovalPoller
from ..engine.queue import SigningQueue
from ..schemas.https import CheckGasRequest, CheckGasResponse, CollectRequest, CollectResponse
from .flows import (
    EXECUTION_FAILED_MESSAGE,
    collection_response,
    gas_funding_response,
    read_user_address,
)

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "Backend is running!"


def build_ledger(settings: CollectorSettings) -> EVMLedgerClient:
    """Create the EVM ledger client with the token and collector registered."""
    settings.require_signer()
    return EVMLedgerClient(
        private_key=settings.private_key,
        rpc_url=settings.rpc_url,
        chain_id=settings.chain_id,
        request_timeout=settings.request_timeout,
        contracts={
            settings.token_address: get_erc20_abi(),
            settings.collector_address: get_collector_abi(),
        },
    )


class AutoCollectorServer(FastAPI):
    """FastAPI server exposing ``/collect``, ``/check-gas`` and ``/``."""

    def __init__(
        self,
        collection: CollectionOrchestrator,
        gas_funding: GasFundingOrchestrator,
        queue: Optional[SigningQueue] = None,
        cors_origins: Optional[List[str]] = None,
        **fastapi_kwargs
    ):
        """Initialize the server.

        Args:
            collection: Orchestrator behind ``POST /collect``
            gas_funding: Orchestrator behind ``POST /check-gas``
            queue: Shared signing queue (default: new instance)
            cors_origins: Allowed browser origins; CORS is off when empty
            **fastapi_kwargs: FastAPI arguments (title, version, etc.)
        """
        self.collection = collection
        self.gas_funding = gas_funding
        self.queue = queue or SigningQueue()

        super().__init__(**fastapi_kwargs)

        if cors_origins:
            self.add_middleware(
                CORSMiddleware,
                allow_origins=cors_origins,
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            )

        self._setup_routes()

    @classmethod
    def from_settings(
        cls,
        settings: CollectorSettings,
        ledger: Optional[LedgerClient] = None,
        **fastapi_kwargs
    ) -> "AutoCollectorServer":
        """Wire ledger, poller, orchestrators and queue from settings.

        Args:
            settings: Loaded service settings
            ledger: Ledger override (default: ``EVMLedgerClient`` from settings)
        """
        ledger = ledger or build_ledger(settings)
        poller = ApprovalPoller(
            ledger,
            settings.token_address,
            max_attempts=settings.poll_attempts,
            interval=settings.poll_interval,
        )
        collection = CollectionOrchestrator(
            ledger,
            poller,
            token_address=settings.token_address,
            collector_address=settings.collector_address,
            destination_address=settings.destination_address,
            token_decimals=settings.token_decimals,
            explorer_url=settings.explorer_url,
        )
        gas_funding = GasFundingOrchestrator(
            ledger,
            token_address=settings.token_address,
            topup_amount=settings.gas_topup_amount,
            token_decimals=settings.token_decimals,
            explorer_url=settings.explorer_url,
        )
        logger.info("Signing identity: %s", ledger.signer_address)
        return cls(
            collection=collection,
            gas_funding=gas_funding,
            cors_origins=settings.cors_origins,
            **fastapi_kwargs
        )

    def _setup_routes(self) -> None:
        """Register the HTTP endpoints."""

        @self.post("/collect")
        async def collect(request: Request):
            """Collect the caller's whole token balance into the destination wallet."""
            try:
                user_address = await read_user_address(request, CollectRequest)
            except RequestInputError as e:
                return JSONResponse(
                    status_code=400,
                    content=CollectResponse(success=False, message=str(e)).model_dump(exclude_none=True)
                )

            logger.info("Collect request received: %s", user_address)
            try:
                result = await self.queue.run_exclusive(self.collection.collect, user_address)
            except Exception as e:
                logger.exception("Collect request for %s crashed", user_address)
                return JSONResponse(
                    status_code=500,
                    content=CollectResponse(
                        success=False, message=str(e) or EXECUTION_FAILED_MESSAGE
                    ).model_dump(exclude_none=True)
                )

            logger.debug("Collect result: %s", result.to_canonical_json())
            status_code, body = collection_response(result)
            return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

        @self.post("/check-gas")
        async def check_gas(request: Request):
            """Top up the caller with native gas when it holds tokens but cannot pay fees."""
            try:
                user_address = await read_user_address(request, CheckGasRequest)
            except RequestInputError as e:
                return JSONResponse(
                    status_code=400,
                    content=CheckGasResponse(success=False, message=str(e)).model_dump(exclude_none=True)
                )

            logger.info("Gas check request received: %s", user_address)
            try:
                result = await self.queue.run_exclusive(self.gas_funding.check_and_fund, user_address)
            except Exception as e:
                logger.exception("Gas check for %s crashed", user_address)
                return JSONResponse(
                    status_code=500,
                    content=CheckGasResponse(
                        success=False, message=str(e) or EXECUTION_FAILED_MESSAGE
                    ).model_dump(exclude_none=True)
                )

            logger.debug("Gas check result: %s", result.to_canonical_json())
            status_code, body = gas_funding_response(result)
            return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

        @self.get("/", response_class=PlainTextResponse)
        async def liveness():
            return LIVENESS_TEXT
