"""Entry point for the DEX accounting service.

Wires the ledger, the faucet throttle, and the HTTP app together and serves
them with uvicorn on a single asyncio event loop.

Component wiring order (in build_components):
1. Ledger document store + LiquidityLedger
2. Claim document store
3. TokenDispenser (paper or web3, based on FAUCET_MODE)
4. ClaimThrottle
"""

import asyncio
from contextlib import asynccontextmanager
from functools import partial
from typing import Any

import uvicorn
from fastapi import FastAPI

from dexledger.api.app import create_app
from dexledger.config import AppSettings
from dexledger.faucet.dispenser import TokenDispenser
from dexledger.faucet.throttle import ClaimThrottle, empty_claims_document
from dexledger.ledger.liquidity import LiquidityLedger, empty_ledger_document
from dexledger.logging import get_logger, setup_logging
from dexledger.storage.document_store import JsonDocumentStore


def _build_dispenser(settings: AppSettings) -> TokenDispenser:
    faucet = settings.faucet
    if faucet.mode == "live":
        from dexledger.faucet.web3_dispenser import Web3TokenDispenser

        return Web3TokenDispenser(faucet)

    from dexledger.faucet.paper_dispenser import PaperTokenDispenser

    return PaperTokenDispenser(
        signer_balance_raw=faucet.paper_balance * 10**faucet.token_decimals,
    )


def build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the ledger, dispenser, and throttle from settings.

    Raises:
        ConfigurationError: In live faucet mode without RPC URL or key.
    """
    ledger_store = JsonDocumentStore(
        settings.ledger.store_path,
        default_factory=partial(empty_ledger_document, settings.ledger.chain_id),
    )
    ledger = LiquidityLedger(ledger_store, settings.ledger)

    claim_store = JsonDocumentStore(
        settings.faucet.store_path,
        default_factory=partial(empty_claims_document, settings.faucet.chain_id),
    )
    dispenser = _build_dispenser(settings)
    throttle = ClaimThrottle(claim_store, dispenser, settings.faucet)

    return {"ledger": ledger, "dispenser": dispenser, "throttle": throttle}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Expose components on app.state; close the dispenser on shutdown."""
    logger = get_logger("dexledger.main")
    components = app.state.components

    app.state.ledger = components["ledger"]
    app.state.throttle = components["throttle"]

    logger.info(
        "lifespan_started",
        chain_id=app.state.settings.ledger.chain_id,
        faucet_mode=app.state.settings.faucet.mode,
    )

    yield

    await components["dispenser"].close()
    logger.info("accounting_service_stopped")


async def run() -> None:
    """Load settings, build components, and serve the API."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("dexledger.main")

    components = build_components(settings)

    app = create_app(settings, lifespan=lifespan)
    app.state.components = components

    logger.info(
        "starting_accounting_service",
        host=settings.server.host,
        port=settings.server.port,
        ledger_store=settings.ledger.store_path,
        claim_store=settings.faucet.store_path,
    )

    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
        log_config=None,  # keep the structlog handlers from setup_logging
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
