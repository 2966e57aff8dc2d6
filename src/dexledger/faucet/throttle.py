"""Per-wallet faucet cooldown ledger with mint-then-transfer delivery.

A wallet may receive at most one distribution per rolling cooldown window
(24h by default). Delivery first tries to mint directly to the wallet; if the
mint is rejected it falls back once to a transfer from the signer's own
balance. The fallback is a compensating path, not a retry: there is no
backoff and a second failure is final for that request.

The claim record is written only after a successful delivery, so a failed
attempt never starts a cooldown. A transaction that was broadcast but not
confirmed in time also starts the cooldown, since it may still be mined; it
is never followed by the transfer fallback.
"""

import math
from collections.abc import Callable
from typing import Any

from dexledger.config import FaucetSettings
from dexledger.exceptions import (
    CooldownActiveError,
    DeliveryError,
    DeliveryPendingError,
    ValidationError,
)
from dexledger.faucet.dispenser import TokenDispenser
from dexledger.logging import get_logger
from dexledger.models import ClaimRecord, now_ms
from dexledger.storage.document_store import JsonDocumentStore
from dexledger.validation import is_valid_address, require_address

logger = get_logger(__name__)

SCHEMA_VERSION = 1


def empty_claims_document(chain_id: int) -> dict[str, Any]:
    """Document layout of a claim store with no claims."""
    return {"version": SCHEMA_VERSION, "chainId": chain_id, "claims": {}}


def clamp_claim_amount(amount: Any, max_amount: int) -> int:
    """Floor ``amount`` to whole units and clamp it into [1, max_amount].

    Raises:
        ValidationError: If ``amount`` is not a finite number.
    """
    if isinstance(amount, bool):
        raise ValidationError("Invalid amount")
    if isinstance(amount, int):
        return max(1, min(max_amount, amount))
    try:
        value = float(amount)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("Invalid amount") from None
    if not math.isfinite(value):
        raise ValidationError("Invalid amount")
    return max(1, min(max_amount, math.floor(value)))


class ClaimThrottle:
    """Rate-limited faucet backed by a claim store and a token dispenser.

    Args:
        store: JSON document store holding the claim map.
        dispenser: Paper or web3 token dispenser.
        settings: Faucet settings (cooldown, max amount, decimals).
        clock: Millisecond clock, injectable for tests.
    """

    def __init__(
        self,
        store: JsonDocumentStore,
        dispenser: TokenDispenser,
        settings: FaucetSettings | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._dispenser = dispenser
        self._settings = settings or FaucetSettings()
        self._clock = clock

    @property
    def cooldown_ms(self) -> int:
        return self._settings.cooldown_hours * 60 * 60 * 1000

    async def get_claim(self, wallet: str) -> ClaimRecord | None:
        """Return the wallet's last successful claim, if any."""
        claims = await self._load_claims()
        return claims.get(wallet.lower())

    async def drip(self, wallet: str, amount: Any) -> str:
        """Deliver faucet tokens to ``wallet`` and record the claim.

        Args:
            wallet: Recipient address.
            amount: Requested whole-token amount, clamped into
                [1, max_amount] before use.

        Returns:
            Hash of the mint or transfer transaction.

        Raises:
            ValidationError: If the wallet or amount is invalid.
            CooldownActiveError: If the wallet claimed within the window.
            DeliveryError: If both mint and the transfer fallback fail.
            DeliveryPendingError: If a broadcast transaction was not confirmed
                in time. The claim is recorded and no fallback is attempted.
        """
        require_address(wallet, "Invalid wallet")
        units = clamp_claim_amount(amount, self._settings.max_amount)
        amount_raw = units * 10**self._settings.token_decimals
        key = wallet.lower()

        # The lock spans delivery so one wallet cannot be paid twice by
        # overlapping requests.
        async with self._store.lock:
            claims = await self._load_claims()
            now = self._clock()
            previous = claims.get(key)
            if previous is not None:
                elapsed = now - previous.last_claim_ms
                if elapsed < self.cooldown_ms:
                    remaining_ms = self.cooldown_ms - elapsed
                    logger.info("faucet_cooldown_active", wallet=key, remaining_ms=remaining_ms)
                    raise CooldownActiveError(remaining_ms)

            try:
                tx_hash, method = await self._deliver(wallet, amount_raw)
            except DeliveryPendingError as e:
                claims[key] = ClaimRecord(
                    wallet=key, last_claim_ms=now, last_amount=units, tx_hash=e.tx_hash
                )
                await self._save_claims(claims)
                logger.warning(
                    "faucet_drip_unconfirmed", wallet=key, method=e.method, tx_hash=e.tx_hash
                )
                raise

            claims[key] = ClaimRecord(
                wallet=key,
                last_claim_ms=now,
                last_amount=units,
                tx_hash=tx_hash,
            )
            await self._save_claims(claims)

        logger.info(
            "faucet_drip_delivered",
            wallet=key,
            amount=units,
            method=method,
            tx_hash=tx_hash,
        )
        return tx_hash

    async def _deliver(self, wallet: str, amount_raw: int) -> tuple[str, str]:
        try:
            return await self._dispenser.mint(wallet, amount_raw), "mint"
        except DeliveryPendingError:
            raise
        except DeliveryError as mint_error:
            logger.warning("faucet_mint_rejected", wallet=wallet, error=mint_error.message)

        try:
            balance = await self._dispenser.signer_balance()
            if balance < amount_raw:
                raise DeliveryError("Faucet balance too low (transfer fallback)")
            return await self._dispenser.transfer(wallet, amount_raw), "transfer"
        except DeliveryPendingError:
            raise
        except DeliveryError as e:
            logger.error("faucet_delivery_failed", wallet=wallet, error=e.message)
            raise DeliveryError(f"Mint failed; transfer failed: {e.message}") from e

    async def _load_claims(self) -> dict[str, ClaimRecord]:
        doc = await self._store.read()
        raw_claims = doc.get("claims")
        if not isinstance(raw_claims, dict):
            # flat {wallet: record} layout written before the claims key existed
            raw_claims = {k: v for k, v in doc.items() if is_valid_address(k)}

        claims = {}
        for wallet, data in raw_claims.items():
            if not isinstance(data, dict):
                continue
            try:
                claims[wallet.lower()] = ClaimRecord.from_dict(wallet, data)
            except (TypeError, ValueError):
                logger.warning("skipping_malformed_claim", wallet=wallet)
        return claims

    async def _save_claims(self, claims: dict[str, ClaimRecord]) -> None:
        doc = empty_claims_document(self._settings.chain_id)
        doc["claims"] = {wallet: rec.to_dict() for wallet, rec in claims.items()}
        await self._store.write(doc)
