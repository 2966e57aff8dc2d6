"""Append-only liquidity ledger with derived pool totals.

Pool totals and wallet positions are never stored. They are recomputed from
the full event log on every read, so no write path can leave a running total
out of step with the log. The only deletion path is pool closure: when a
withdrawal brings all three totals (base, quote, LP) to exactly zero, the pool
and every one of its events are dropped from the store.

Ledger flow for a report:
1. Validate wallet, amounts and txHash (nothing touched on failure)
2. Take the store lock and read the document
3. Check the pool exists and the txHash is not already used
4. Append the event (and close the pool if a withdrawal emptied it)
5. Atomically rewrite the document
"""

from collections.abc import Callable
from typing import Any
from uuid import uuid4

from dexledger.config import LedgerSettings
from dexledger.exceptions import DuplicateEventError, PoolNotFoundError, ValidationError
from dexledger.logging import get_logger
from dexledger.models import (
    EventKind,
    LedgerEvent,
    PoolDetail,
    PoolRecord,
    PoolTotals,
    PoolView,
    now_ms,
)
from dexledger.storage.document_store import JsonDocumentStore
from dexledger.validation import (
    clean_text,
    clean_token_address,
    is_valid_address,
    normalize_tx_hash,
    parse_raw_amount,
    require_address,
)

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_ID_PREFIX = {EventKind.DEPOSIT: "dep", EventKind.WITHDRAW: "wd"}


def empty_ledger_document(chain_id: int) -> dict[str, Any]:
    """Document layout of a ledger store with no pools."""
    return {"version": SCHEMA_VERSION, "chainId": chain_id, "pools": [], "deposits": []}


def compute_pool_totals(events: list[LedgerEvent], pool_id: str) -> PoolTotals:
    """Sum a pool's deposits minus withdrawals, clamping each total at zero."""
    base = quote = lp = 0
    count = 0
    last_ms = 0
    for ev in events:
        if ev.pool_id != pool_id:
            continue
        count += 1
        base += ev.sign * ev.base_raw
        quote += ev.sign * ev.quote_raw
        lp += ev.sign * ev.lp_raw
        last_ms = max(last_ms, ev.created_at_ms)
    return PoolTotals(
        base_raw=max(base, 0),
        quote_raw=max(quote, 0),
        lp_raw=max(lp, 0),
        deposit_count=count,
        last_deposit_ms=last_ms,
    )


def compute_user_lp(events: list[LedgerEvent], pool_id: str, wallet: str) -> int:
    """Net LP a wallet holds in a pool according to the log, clamped at zero."""
    key = wallet.lower()
    total = 0
    for ev in events:
        if ev.pool_id == pool_id and ev.wallet.lower() == key:
            total += ev.sign * ev.lp_raw
    return max(total, 0)


def _newest_first(items: list, key: Callable[[Any], int]) -> list:
    # ties keep the later-appended item first
    indexed = sorted(enumerate(items), key=lambda pair: (key(pair[1]), pair[0]), reverse=True)
    return [item for _, item in indexed]


class LiquidityLedger:
    """Durable record of liquidity activity per pool.

    Args:
        store: JSON document store holding pools and events.
        settings: Ledger policy (chain id, txHash and position enforcement).
        clock: Millisecond clock, injectable for tests.
    """

    def __init__(
        self,
        store: JsonDocumentStore,
        settings: LedgerSettings | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._settings = settings or LedgerSettings()
        self._clock = clock

    @property
    def chain_id(self) -> int:
        return self._settings.chain_id

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def list_pools(self, wallet: str | None = None) -> list[PoolView]:
        """Return listed pools with totals merged in, newest first.

        Pools with no LP outstanding and at most one seeded side are hidden
        even though their record still exists. When ``wallet`` is a valid
        address each view also carries that wallet's LP position.
        """
        pools, events = await self._load()
        with_position = wallet is not None and is_valid_address(wallet)

        views = []
        for pool in pools:
            totals = compute_pool_totals(events, pool.id)
            if not totals.is_listed:
                continue
            user_lp = compute_user_lp(events, pool.id, wallet) if with_position else None
            views.append(PoolView(record=pool, totals=totals, user_lp_raw=user_lp))

        return _newest_first(views, key=lambda v: v.record.created_at_ms)

    async def get_pool(self, pool_id: str) -> PoolDetail:
        """Return a pool with totals and its events (newest first).

        Raises:
            PoolNotFoundError: If no pool has this id, whether it was never
                created or was closed by a withdrawal.
        """
        pools, events = await self._load()
        pool = next((p for p in pools if p.id == pool_id), None)
        if pool is None:
            raise PoolNotFoundError(pool_id)

        pool_events = [ev for ev in events if ev.pool_id == pool_id]
        return PoolDetail(
            pool=PoolView(record=pool, totals=compute_pool_totals(events, pool_id)),
            events=_newest_first(pool_events, key=lambda ev: ev.created_at_ms),
        )

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def create_pool(
        self,
        owner: str,
        name: str = "",
        pair: str = "",
        base_symbol: str = "",
        quote_symbol: str = "",
        quote_address: str = "",
    ) -> PoolRecord:
        """Create a bookkeeping placeholder for a pool.

        No funds are involved; the pool only shows up in listings once a
        deposit is recorded against it.

        Raises:
            ValidationError: If ``owner`` is not a valid address.
        """
        require_address(owner, "Invalid owner address")

        base = clean_text(base_symbol, 16) or "TOKEN0"
        quote = clean_text(quote_symbol, 16) or "TOKEN1"
        ts = self._clock()
        pool = PoolRecord(
            id=f"pool_{ts}_{uuid4().hex[:8]}",
            chain_id=self._settings.chain_id,
            owner=owner,
            name=clean_text(name, 64),
            pair=clean_text(pair, 48) or f"{base}/{quote}",
            base_symbol=base,
            quote_symbol=quote,
            quote_address=clean_token_address(quote_address),
            created_at_ms=ts,
        )

        async with self._store.lock:
            pools, events = await self._load()
            pools.append(pool)
            await self._save(pools, events)

        logger.info("pool_created", pool_id=pool.id, owner=owner, pair=pool.pair)
        return pool

    async def add_deposit(
        self,
        pool_id: str,
        wallet: str,
        base_raw: Any,
        quote_raw: Any,
        lp_raw: Any,
        tx_hash: str | None = None,
    ) -> LedgerEvent:
        """Record a deposit. All three amounts must be strictly positive.

        Raises:
            ValidationError: Bad wallet, non-positive amount, bad txHash.
            PoolNotFoundError: If the pool does not exist.
            DuplicateEventError: If the txHash belongs to another event.
        """
        self._require_pool_id(pool_id)
        require_address(wallet, "Invalid wallet address")
        base = parse_raw_amount(base_raw, "Invalid base amount")
        quote = parse_raw_amount(quote_raw, "Invalid quote amount")
        lp = parse_raw_amount(lp_raw, "Invalid LP amount")
        if base <= 0:
            raise ValidationError("Invalid base amount")
        if quote <= 0:
            raise ValidationError("Invalid quote amount")
        if lp <= 0:
            raise ValidationError("Invalid LP amount")
        tx = self._require_tx_hash(tx_hash)

        return await self._append(EventKind.DEPOSIT, pool_id, wallet, base, quote, lp, tx)

    async def add_withdrawal(
        self,
        pool_id: str,
        wallet: str,
        base_raw: Any,
        quote_raw: Any,
        lp_raw: Any,
        tx_hash: str | None = None,
    ) -> LedgerEvent:
        """Record a withdrawal and close the pool if it is now empty.

        ``lp_raw`` must be positive and at least one of base/quote must be
        positive. Withdrawals larger than what was deposited are accepted
        (totals clamp at zero) unless enforce_position_limit is set.

        Raises:
            ValidationError: Bad wallet, bad amounts, bad txHash, or an LP
                amount above the wallet's position when enforced.
            PoolNotFoundError: If the pool does not exist.
            DuplicateEventError: If the txHash belongs to another event.
        """
        self._require_pool_id(pool_id)
        require_address(wallet, "Invalid wallet address")
        base = parse_raw_amount(base_raw, "Invalid base amount")
        quote = parse_raw_amount(quote_raw, "Invalid quote amount")
        lp = parse_raw_amount(lp_raw, "Invalid LP amount")
        if base == 0 and quote == 0:
            raise ValidationError("Invalid withdrawal amount")
        if lp <= 0:
            raise ValidationError("Invalid LP amount")
        tx = self._require_tx_hash(tx_hash)

        return await self._append(EventKind.WITHDRAW, pool_id, wallet, base, quote, lp, tx)

    # ──────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────

    async def _append(
        self,
        kind: EventKind,
        pool_id: str,
        wallet: str,
        base: int,
        quote: int,
        lp: int,
        tx_hash: str,
    ) -> LedgerEvent:
        ts = self._clock()
        event = LedgerEvent(
            id=f"{_ID_PREFIX[kind]}_{ts}_{uuid4().hex[:8]}",
            pool_id=pool_id,
            wallet=wallet,
            kind=kind,
            base_raw=base,
            quote_raw=quote,
            lp_raw=lp,
            tx_hash=tx_hash,
            created_at_ms=ts,
        )

        async with self._store.lock:
            pools, events = await self._load()
            if not any(p.id == pool_id for p in pools):
                raise PoolNotFoundError(pool_id)

            existing = self._find_by_tx_hash(events, tx_hash)
            if existing is not None:
                if existing.same_report(event):
                    logger.info(
                        "duplicate_report_ignored",
                        pool_id=pool_id,
                        event_id=existing.id,
                        tx_hash=tx_hash,
                    )
                    return existing
                raise DuplicateEventError(tx_hash)

            if kind is EventKind.WITHDRAW and self._settings.enforce_position_limit:
                position = compute_user_lp(events, pool_id, wallet)
                if lp > position:
                    raise ValidationError("LP amount exceeds wallet position")

            events.append(event)

            closed = False
            if kind is EventKind.WITHDRAW and compute_pool_totals(events, pool_id).is_empty:
                pools = [p for p in pools if p.id != pool_id]
                events = [ev for ev in events if ev.pool_id != pool_id]
                closed = True

            await self._save(pools, events)

        logger.info(
            "ledger_event_recorded",
            pool_id=pool_id,
            event_id=event.id,
            kind=kind.value,
            wallet=wallet,
            base_raw=str(base),
            quote_raw=str(quote),
            lp_raw=str(lp),
            tx_hash=tx_hash or None,
        )
        if closed:
            logger.info("pool_closed", pool_id=pool_id)
        return event

    @staticmethod
    def _find_by_tx_hash(events: list[LedgerEvent], tx_hash: str) -> LedgerEvent | None:
        if not tx_hash:
            return None
        key = tx_hash.lower()
        return next((ev for ev in events if ev.tx_hash.lower() == key), None)

    @staticmethod
    def _require_pool_id(pool_id: str) -> None:
        if not pool_id:
            raise ValidationError("Missing poolId")

    def _require_tx_hash(self, tx_hash: str | None) -> str:
        tx = normalize_tx_hash(tx_hash)
        if not tx and self._settings.require_tx_hash:
            raise ValidationError("Missing txHash")
        return tx

    async def _load(self) -> tuple[list[PoolRecord], list[LedgerEvent]]:
        doc = await self._store.read()
        stored_chain = doc.get("chainId")
        if stored_chain is not None and stored_chain != self._settings.chain_id:
            logger.warning(
                "ledger_chain_mismatch",
                stored_chain_id=stored_chain,
                configured_chain_id=self._settings.chain_id,
            )

        pools = []
        for raw in doc.get("pools") or []:
            try:
                pools.append(PoolRecord.from_dict(raw))
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("skipping_malformed_pool", record=raw)

        events = []
        for raw in doc.get("deposits") or []:
            try:
                events.append(LedgerEvent.from_dict(raw))
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("skipping_malformed_event", record=raw)

        return pools, events

    async def _save(self, pools: list[PoolRecord], events: list[LedgerEvent]) -> None:
        doc = empty_ledger_document(self._settings.chain_id)
        doc["pools"] = [p.to_dict() for p in pools]
        doc["deposits"] = [ev.to_dict() for ev in events]
        await self._store.write(doc)
