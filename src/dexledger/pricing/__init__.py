"""Pricing engine -- exact-integer constant-product quotes."""

from dexledger.pricing.amm import (
    clamp_slippage_bps,
    minimum_output,
    quote_input_for_exact_output,
    quote_liquidity,
    quote_output_for_exact_input,
    spot_price,
)

__all__ = [
    "clamp_slippage_bps",
    "minimum_output",
    "quote_input_for_exact_output",
    "quote_liquidity",
    "quote_output_for_exact_input",
    "spot_price",
]
