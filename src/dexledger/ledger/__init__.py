"""Liquidity ledger -- append-only deposit/withdrawal log per pool."""

from dexledger.ledger.liquidity import (
    LiquidityLedger,
    compute_pool_totals,
    compute_user_lp,
    empty_ledger_document,
)

__all__ = [
    "LiquidityLedger",
    "compute_pool_totals",
    "compute_user_lp",
    "empty_ledger_document",
]
