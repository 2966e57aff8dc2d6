"""Tests for ClaimThrottle cooldown enforcement and delivery fallback.

Covers amount clamping, the 24h rolling window, mint -> transfer fallback,
and that failed deliveries never start a cooldown.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from dexledger.config import FaucetSettings
from dexledger.exceptions import (
    CooldownActiveError,
    DeliveryError,
    ErrorKind,
    ValidationError,
)
from dexledger.faucet.dispenser import TokenDispenser
from dexledger.faucet.paper_dispenser import PaperTokenDispenser
from dexledger.faucet.throttle import ClaimThrottle, clamp_claim_amount
from dexledger.storage.document_store import JsonDocumentStore
from tests.helpers import HOUR_MS, WALLET_A, WALLET_B, FakeClock

UNIT = 10**6  # token decimals = 6


class TestClampClaimAmount:
    """clamp_claim_amount: floor then clamp into [1, max]."""

    @pytest.mark.parametrize(
        "amount, expected",
        [
            (150, 100),
            (100, 100),
            (42, 42),
            (0, 1),
            (-3, 1),
            ("7.9", 7),
            (0.4, 1),
            ("25", 25),
            (10**400, 100),
            (-(10**400), 1),
        ],
    )
    def test_clamps(self, amount: object, expected: int) -> None:
        assert clamp_claim_amount(amount, 100) == expected

    @pytest.mark.parametrize(
        "amount", [None, "abc", "1e400", float("inf"), float("nan"), True, [1]]
    )
    def test_non_numeric_rejected(self, amount: object) -> None:
        with pytest.raises(ValidationError, match="Invalid amount"):
            clamp_claim_amount(amount, 100)


class TestDrip:
    """ClaimThrottle.drip cooldown scenario."""

    @pytest.mark.asyncio
    async def test_claim_cooldown_and_reclaim(
        self,
        throttle: ClaimThrottle,
        dispenser: PaperTokenDispenser,
        clock: FakeClock,
    ) -> None:
        tx_hash = await throttle.drip(WALLET_A, 150)

        assert tx_hash.startswith("0x") and len(tx_hash) == 66
        assert dispenser.balance_of(WALLET_A) == 100 * UNIT
        claim = await throttle.get_claim(WALLET_A)
        assert claim is not None
        assert claim.last_amount == 100
        assert claim.last_claim_ms == clock.now
        assert claim.tx_hash == tx_hash

        clock.advance(1 * HOUR_MS)
        with pytest.raises(CooldownActiveError) as exc_info:
            await throttle.drip(WALLET_A, 10)
        assert exc_info.value.remaining_min == 23 * 60
        assert "~1380 min" in exc_info.value.message
        assert exc_info.value.kind is ErrorKind.COOLDOWN
        assert exc_info.value.retryable is True

        clock.advance(23 * HOUR_MS + 1_000)
        await throttle.drip(WALLET_A, 10)
        assert dispenser.balance_of(WALLET_A) == 110 * UNIT

    @pytest.mark.asyncio
    async def test_remaining_minutes_round_up(
        self, throttle: ClaimThrottle, clock: FakeClock
    ) -> None:
        await throttle.drip(WALLET_A, 1)
        clock.advance(24 * HOUR_MS - 1)

        with pytest.raises(CooldownActiveError) as exc_info:
            await throttle.drip(WALLET_A, 1)
        assert exc_info.value.remaining_ms == 1
        assert exc_info.value.remaining_min == 1

    @pytest.mark.asyncio
    async def test_cooldown_is_per_wallet_and_case_insensitive(
        self, throttle: ClaimThrottle
    ) -> None:
        await throttle.drip(WALLET_A, 5)
        await throttle.drip(WALLET_B, 5)

        with pytest.raises(CooldownActiveError):
            await throttle.drip(WALLET_A.upper().replace("0X", "0x"), 5)

    @pytest.mark.asyncio
    async def test_invalid_wallet_rejected(self, throttle: ClaimThrottle) -> None:
        with pytest.raises(ValidationError, match="Invalid wallet"):
            await throttle.drip("0xnothex", 5)

    @pytest.mark.asyncio
    async def test_claim_store_layout(
        self, throttle: ClaimThrottle, faucet_settings: FaucetSettings, clock: FakeClock
    ) -> None:
        tx_hash = await throttle.drip(WALLET_A, 3)

        doc = json.loads(Path(faucet_settings.store_path).read_text(encoding="utf-8"))
        assert doc["version"] == 1
        assert doc["chainId"] == faucet_settings.chain_id
        assert doc["claims"][WALLET_A.lower()] == {
            "lastClaimMs": clock.now,
            "lastAmount": 3,
            "txHash": tx_hash,
        }

    @pytest.mark.asyncio
    async def test_legacy_flat_claim_map_honoured(
        self, throttle: ClaimThrottle, faucet_settings: FaucetSettings, clock: FakeClock
    ) -> None:
        legacy = {WALLET_A.lower(): {"lastClaimMs": clock.now - HOUR_MS, "lastAmount": 5, "txHash": ""}}
        Path(faucet_settings.store_path).write_text(json.dumps(legacy), encoding="utf-8")

        with pytest.raises(CooldownActiveError):
            await throttle.drip(WALLET_A, 5)


class TestDeliveryFallback:
    """Mint first, then a single transfer attempt."""

    @pytest.fixture
    def non_minting_dispenser(self) -> PaperTokenDispenser:
        return PaperTokenDispenser(signer_balance_raw=250 * UNIT, can_mint=False)

    @pytest.fixture
    def fallback_throttle(
        self,
        claim_store: JsonDocumentStore,
        non_minting_dispenser: PaperTokenDispenser,
        faucet_settings: FaucetSettings,
        clock: FakeClock,
    ) -> ClaimThrottle:
        return ClaimThrottle(claim_store, non_minting_dispenser, faucet_settings, clock=clock)

    @pytest.mark.asyncio
    async def test_transfer_used_when_mint_rejected(
        self,
        fallback_throttle: ClaimThrottle,
        non_minting_dispenser: PaperTokenDispenser,
    ) -> None:
        await fallback_throttle.drip(WALLET_A, 100)

        assert non_minting_dispenser.balance_of(WALLET_A) == 100 * UNIT
        assert await non_minting_dispenser.signer_balance() == 150 * UNIT

    @pytest.mark.asyncio
    async def test_low_balance_fails_without_recording_claim(
        self,
        claim_store: JsonDocumentStore,
        faucet_settings: FaucetSettings,
        clock: FakeClock,
    ) -> None:
        dispenser = PaperTokenDispenser(signer_balance_raw=5 * UNIT, can_mint=False)
        throttle = ClaimThrottle(claim_store, dispenser, faucet_settings, clock=clock)

        with pytest.raises(DeliveryError) as exc_info:
            await throttle.drip(WALLET_A, 10)

        assert exc_info.value.message == (
            "Mint failed; transfer failed: Faucet balance too low (transfer fallback)"
        )
        assert exc_info.value.kind is ErrorKind.DELIVERY
        assert await throttle.get_claim(WALLET_A) is None
        assert not Path(faucet_settings.store_path).exists()

    @pytest.mark.asyncio
    async def test_transfer_attempted_at_most_once(
        self,
        claim_store: JsonDocumentStore,
        faucet_settings: FaucetSettings,
        clock: FakeClock,
    ) -> None:
        dispenser = AsyncMock(spec=TokenDispenser)
        dispenser.mint.side_effect = DeliveryError("mint failed: not minter")
        dispenser.signer_balance.return_value = 10**30
        dispenser.transfer.side_effect = DeliveryError("transfer failed: nonce too low")
        throttle = ClaimThrottle(claim_store, dispenser, faucet_settings, clock=clock)

        with pytest.raises(DeliveryError, match="transfer failed: nonce too low"):
            await throttle.drip(WALLET_A, 1)

        dispenser.mint.assert_awaited_once_with(WALLET_A, 1 * UNIT)
        dispenser.transfer.assert_awaited_once_with(WALLET_A, 1 * UNIT)

    @pytest.mark.asyncio
    async def test_failed_delivery_does_not_start_cooldown(
        self,
        claim_store: JsonDocumentStore,
        faucet_settings: FaucetSettings,
        clock: FakeClock,
    ) -> None:
        dispenser = AsyncMock(spec=TokenDispenser)
        dispenser.mint.side_effect = [DeliveryError("rpc down"), "0x" + "ab" * 32]
        dispenser.signer_balance.return_value = 0
        throttle = ClaimThrottle(claim_store, dispenser, faucet_settings, clock=clock)

        with pytest.raises(DeliveryError):
            await throttle.drip(WALLET_A, 1)

        assert await throttle.drip(WALLET_A, 1) == "0x" + "ab" * 32
