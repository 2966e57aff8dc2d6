"""Constant-product (x * y = k) swap math with a 0.30% input fee.

All calculations use Python int arithmetic exclusively with truncating
(floor) division -- no float or Decimal conversion anywhere. Results must
match the on-chain router bit-for-bit for the same integer inputs, so every
caller (deposit sizing, swap sizing, quote previews) shares these functions.

Invalid or unsatisfiable inputs return the sentinel 0 rather than raising.
"""

FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

BPS_DENOMINATOR = 10_000
MAX_SLIPPAGE_BPS = 5_000  # 50%


def quote_output_for_exact_input(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Amount received for selling exactly ``amount_in``.

    Formula:
        amount_in_with_fee = amount_in * 997
        amount_out = amount_in_with_fee * reserve_out
                     // (reserve_in * 1000 + amount_in_with_fee)

    Args:
        amount_in: Input amount in minor units.
        reserve_in: Pool reserve of the input token.
        reserve_out: Pool reserve of the output token.

    Returns:
        Output amount, always strictly below ``reserve_out``; 0 when any
        argument is non-positive.
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    amount_in_with_fee = amount_in * FEE_NUMERATOR
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


def quote_input_for_exact_output(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """Amount that must be sold to receive exactly ``amount_out``.

    Formula:
        amount_in = reserve_in * amount_out * 1000
                    // ((reserve_out - amount_out) * 997) + 1

    The trailing +1 guarantees that feeding the result back through
    quote_output_for_exact_input yields at least ``amount_out``.

    Args:
        amount_out: Desired output amount in minor units.
        reserve_in: Pool reserve of the input token.
        reserve_out: Pool reserve of the output token.

    Returns:
        Required input amount; 0 when the request is unsatisfiable
        (``amount_out >= reserve_out``) or any argument is non-positive.
    """
    if amount_out <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    if amount_out >= reserve_out:
        return 0
    numerator = reserve_in * amount_out * FEE_DENOMINATOR
    denominator = (reserve_out - amount_out) * FEE_NUMERATOR
    return numerator // denominator + 1


def clamp_slippage_bps(slippage_bps: int) -> int:
    """Clamp a slippage tolerance into [0, 5000] basis points."""
    return max(0, min(MAX_SLIPPAGE_BPS, int(slippage_bps)))


def minimum_output(amount_out: int, slippage_bps: int) -> int:
    """Lower bound on output after applying a slippage tolerance.

    ``slippage_bps`` outside [0, 5000] is clamped silently, never rejected.
    """
    bps = clamp_slippage_bps(slippage_bps)
    return amount_out * (BPS_DENOMINATOR - bps) // BPS_DENOMINATOR


def quote_liquidity(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Amount of token B matching ``amount_a`` at the current pool ratio.

    Used to size the second leg of a deposit so it lands at the pool price.
    Returns 0 for an unseeded pool or non-positive input.
    """
    if amount_a <= 0 or reserve_a <= 0 or reserve_b <= 0:
        return 0
    return amount_a * reserve_b // reserve_a


def spot_price(reserve_quote: int, reserve_base: int, scale: int = 10**18) -> int:
    """Quote-token minor units per ``scale`` base-token minor units.

    With an 18-decimal base token and the default scale this is the price of
    one whole base token expressed in quote minor units.
    """
    if reserve_quote <= 0 or reserve_base <= 0:
        return 0
    return reserve_quote * scale // reserve_base
