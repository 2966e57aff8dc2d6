"""Swap quote endpoint backed by the pricing engine.

Reserves are supplied by the caller (read from the pair contract); the
service holds no reserve state of its own.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request

from dexledger.exceptions import ValidationError
from dexledger.pricing.amm import (
    clamp_slippage_bps,
    minimum_output,
    quote_input_for_exact_output,
    quote_output_for_exact_input,
)
from dexledger.validation import parse_raw_amount

router = APIRouter()


@router.get("/quote")
async def get_quote(
    request: Request,
    reserve_in_param: str = Query(alias="reserveIn"),
    reserve_out_param: str = Query(alias="reserveOut"),
    amount_in_param: str | None = Query(None, alias="amountIn"),
    amount_out_param: str | None = Query(None, alias="amountOut"),
    slippage_bps: int | None = Query(None, alias="slippageBps"),
) -> dict[str, Any]:
    """Quote an exact-input or exact-output swap.

    Exactly one of amountIn / amountOut must be given. Exact-input quotes
    carry a slippage-adjusted minAmountOut; exact-output quotes report the
    required input and the exact output as the minimum.
    """
    if (amount_in_param is None) == (amount_out_param is None):
        raise ValidationError("Provide exactly one of amountIn or amountOut")

    reserve_in = parse_raw_amount(reserve_in_param, "Invalid reserveIn")
    reserve_out = parse_raw_amount(reserve_out_param, "Invalid reserveOut")
    if slippage_bps is None:
        slippage_bps = request.app.state.settings.pricing.default_slippage_bps
    bps = clamp_slippage_bps(slippage_bps)

    if amount_in_param is not None:
        amount_in = parse_raw_amount(amount_in_param, "Invalid amountIn")
        amount_out = quote_output_for_exact_input(amount_in, reserve_in, reserve_out)
        min_out = minimum_output(amount_out, bps)
    else:
        amount_out = parse_raw_amount(amount_out_param, "Invalid amountOut")
        amount_in = quote_input_for_exact_output(amount_out, reserve_in, reserve_out)
        if amount_in == 0:
            amount_out = 0
        min_out = amount_out

    return {
        "ok": True,
        "amountIn": str(amount_in),
        "amountOut": str(amount_out),
        "minAmountOut": str(min_out),
        "slippageBps": bps,
    }
