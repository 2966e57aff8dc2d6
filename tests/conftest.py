"""Shared test fixtures for the DEX accounting service."""

from functools import partial
from pathlib import Path

import pytest

from dexledger.config import AppSettings, FaucetSettings, LedgerSettings
from dexledger.faucet.paper_dispenser import PaperTokenDispenser
from dexledger.faucet.throttle import ClaimThrottle, empty_claims_document
from dexledger.ledger.liquidity import LiquidityLedger, empty_ledger_document
from dexledger.storage.document_store import JsonDocumentStore
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger_settings(tmp_path: Path) -> LedgerSettings:
    return LedgerSettings(store_path=str(tmp_path / "pools.json"), chain_id=1043)


@pytest.fixture
def ledger_store(ledger_settings: LedgerSettings) -> JsonDocumentStore:
    return JsonDocumentStore(
        ledger_settings.store_path,
        default_factory=partial(empty_ledger_document, ledger_settings.chain_id),
    )


@pytest.fixture
def ledger(
    ledger_store: JsonDocumentStore, ledger_settings: LedgerSettings, clock: FakeClock
) -> LiquidityLedger:
    return LiquidityLedger(ledger_store, ledger_settings, clock=clock)


@pytest.fixture
def faucet_settings(tmp_path: Path) -> FaucetSettings:
    return FaucetSettings(
        mode="paper",
        store_path=str(tmp_path / "claims.json"),
        token_decimals=6,
        max_amount=100,
        cooldown_hours=24,
    )


@pytest.fixture
def claim_store(faucet_settings: FaucetSettings) -> JsonDocumentStore:
    return JsonDocumentStore(
        faucet_settings.store_path,
        default_factory=partial(empty_claims_document, faucet_settings.chain_id),
    )


@pytest.fixture
def dispenser() -> PaperTokenDispenser:
    return PaperTokenDispenser(signer_balance_raw=0, can_mint=True)


@pytest.fixture
def throttle(
    claim_store: JsonDocumentStore,
    dispenser: PaperTokenDispenser,
    faucet_settings: FaucetSettings,
    clock: FakeClock,
) -> ClaimThrottle:
    return ClaimThrottle(claim_store, dispenser, faucet_settings, clock=clock)


@pytest.fixture
def app_settings(ledger_settings: LedgerSettings, faucet_settings: FaucetSettings) -> AppSettings:
    """Return AppSettings with temp store paths and paper faucet mode."""
    return AppSettings(log_level="DEBUG", ledger=ledger_settings, faucet=faucet_settings)
