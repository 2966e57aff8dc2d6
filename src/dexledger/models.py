"""Shared data models for the DEX accounting service.

CRITICAL: All token amounts are Python ints in minor units. They are written
to the store and to the wire as decimal strings so no JSON consumer ever
rounds them through a float.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    """Ledger event direction."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return int(time.time() * 1000)


def iso_from_ms(ts_ms: int) -> str:
    """Render a millisecond timestamp as an ISO-8601 UTC string."""
    dt = datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _raw(value: Any) -> int:
    """Parse a stored raw amount (string or int), treating junk as zero."""
    try:
        return int(str(value or "0"))
    except ValueError:
        return 0


@dataclass(frozen=True)
class PoolRecord:
    """A tracked liquidity pool shadow. Totals are never stored here."""

    id: str
    chain_id: int
    owner: str
    name: str
    pair: str
    base_symbol: str
    quote_symbol: str
    quote_address: str
    created_at_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chainId": self.chain_id,
            "owner": self.owner,
            "name": self.name,
            "pair": self.pair,
            "baseSymbol": self.base_symbol,
            "quoteSymbol": self.quote_symbol,
            "quoteAddress": self.quote_address,
            "createdAtMs": self.created_at_ms,
            "createdAtIso": iso_from_ms(self.created_at_ms),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PoolRecord":
        return cls(
            id=str(data["id"]),
            chain_id=int(data.get("chainId", 0)),
            owner=str(data.get("owner", "")),
            name=str(data.get("name", "")),
            pair=str(data.get("pair", "")),
            base_symbol=str(data.get("baseSymbol", "")),
            quote_symbol=str(data.get("quoteSymbol", "")),
            quote_address=str(data.get("quoteAddress", "")),
            created_at_ms=int(data.get("createdAtMs", 0)),
        )


@dataclass(frozen=True)
class LedgerEvent:
    """One deposit or withdrawal report. Immutable once appended."""

    id: str
    pool_id: str
    wallet: str
    kind: EventKind
    base_raw: int
    quote_raw: int
    lp_raw: int
    tx_hash: str
    created_at_ms: int

    @property
    def sign(self) -> int:
        return -1 if self.kind is EventKind.WITHDRAW else 1

    def same_report(self, other: "LedgerEvent") -> bool:
        """True if both events describe the same reported on-chain action."""
        return (
            self.pool_id == other.pool_id
            and self.kind is other.kind
            and self.wallet.lower() == other.wallet.lower()
            and self.base_raw == other.base_raw
            and self.quote_raw == other.quote_raw
            and self.lp_raw == other.lp_raw
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "poolId": self.pool_id,
            "wallet": self.wallet,
            "kind": self.kind.value,
            "baseRaw": str(self.base_raw),
            "quoteRaw": str(self.quote_raw),
            "lpRaw": str(self.lp_raw),
            "txHash": self.tx_hash,
            "createdAtMs": self.created_at_ms,
            "createdAtIso": iso_from_ms(self.created_at_ms),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerEvent":
        # amount0Raw/bdagRaw and amount1Raw/usdcRaw are older key spellings
        base = data.get("baseRaw") or data.get("amount0Raw") or data.get("bdagRaw")
        quote = data.get("quoteRaw") or data.get("amount1Raw") or data.get("usdcRaw")
        kind = EventKind.WITHDRAW if data.get("kind") == "withdraw" else EventKind.DEPOSIT
        return cls(
            id=str(data["id"]),
            pool_id=str(data.get("poolId", "")),
            wallet=str(data.get("wallet", "")),
            kind=kind,
            base_raw=_raw(base),
            quote_raw=_raw(quote),
            lp_raw=_raw(data.get("lpRaw")),
            tx_hash=str(data.get("txHash") or ""),
            created_at_ms=int(data.get("createdAtMs", 0)),
        )


@dataclass(frozen=True)
class PoolTotals:
    """Signed sums over a pool's event log, each clamped at zero."""

    base_raw: int = 0
    quote_raw: int = 0
    lp_raw: int = 0
    deposit_count: int = 0
    last_deposit_ms: int = 0

    @property
    def is_empty(self) -> bool:
        return self.base_raw == 0 and self.quote_raw == 0 and self.lp_raw == 0

    @property
    def is_listed(self) -> bool:
        """Pools with LP outstanding, or with both sides seeded, are listed."""
        return self.lp_raw > 0 or (self.base_raw > 0 and self.quote_raw > 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBaseRaw": str(self.base_raw),
            "totalQuoteRaw": str(self.quote_raw),
            "totalLpRaw": str(self.lp_raw),
            "depositCount": self.deposit_count,
            "lastDepositMs": self.last_deposit_ms,
        }


@dataclass(frozen=True)
class PoolView:
    """A pool record merged with its derived totals (and optionally a position)."""

    record: PoolRecord
    totals: PoolTotals
    user_lp_raw: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {**self.record.to_dict(), **self.totals.to_dict()}
        if self.user_lp_raw is not None:
            data["userLpRaw"] = str(self.user_lp_raw)
        return data


@dataclass(frozen=True)
class PoolDetail:
    """Full detail view: pool with totals plus its events, newest first."""

    pool: PoolView
    events: list[LedgerEvent] = field(default_factory=list)


@dataclass(frozen=True)
class ClaimRecord:
    """One wallet's faucet cooldown state, keyed by lowercased wallet."""

    wallet: str
    last_claim_ms: int
    last_amount: int
    tx_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastClaimMs": self.last_claim_ms,
            "lastAmount": self.last_amount,
            "txHash": self.tx_hash,
        }

    @classmethod
    def from_dict(cls, wallet: str, data: dict[str, Any]) -> "ClaimRecord":
        return cls(
            wallet=wallet.lower(),
            last_claim_ms=int(data.get("lastClaimMs") or 0),
            last_amount=int(data.get("lastAmount") or 0),
            tx_hash=str(data.get("txHash") or ""),
        )
