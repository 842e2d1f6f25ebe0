"""
Safe reward codec.

Converts user-entered decimal reward strings into the fixed-point integer
magnitude bridge contracts expect, capping anything above
``MAX_SAFE_INTEGER`` to exactly that bound.  All arithmetic is done on
integers or exact ``Decimal`` values; floats are never involved.

Two variants share the capping rule:

- unsigned (repatriation): negative input is rejected
- signed (expatriation): negative input is accepted and passed through;
  only the positive overflow is capped
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from .constants import DISPLAY_DECIMALS, MAX_SAFE_INTEGER
from .models import RewardAmount

logger = logging.getLogger(__name__)

_DISPLAY_QUANTUM = Decimal(1).scaleb(-DISPLAY_DECIMALS)


def _check_decimals(decimals: int) -> None:
    if not isinstance(decimals, int) or isinstance(decimals, bool) or decimals < 0:
        raise ValueError(f"decimals must be a non-negative integer, got {decimals!r}")


def parse_units(value: str, decimals: int) -> int:
    """Exact ``value * 10**decimals`` as an ``int``.

    Raises ``ValueError`` for non-numeric input or more fractional digits
    than *decimals* allows.
    """
    _check_decimals(decimals)
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a decimal number: {value!r}") from None
    if not parsed.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    sign, digits, exponent = parsed.as_tuple()
    coefficient = int("".join(map(str, digits)) or "0")
    shift = exponent + decimals
    if shift >= 0:
        magnitude = coefficient * 10**shift
    else:
        divisor = 10 ** (-shift)
        if coefficient % divisor:
            raise ValueError(f"{value!r} has more than {decimals} fractional digits")
        magnitude = coefficient // divisor
    return -magnitude if sign else magnitude


def format_units(magnitude: int, decimals: int) -> str:
    """Exact decimal rendering of ``magnitude / 10**decimals``.

    Trailing fractional zeros are dropped: ``1500000, 6 → "1.5"``.
    """
    _check_decimals(decimals)
    negative = magnitude < 0
    digits = str(abs(magnitude))
    if decimals:
        digits = digits.rjust(decimals + 1, "0")
        whole, frac = digits[:-decimals], digits[-decimals:].rstrip("0")
        text = f"{whole}.{frac}" if frac else whole
    else:
        text = digits
    return f"-{text}" if negative and text != "0" else text


def _fixed(magnitude: int, decimals: int) -> Decimal:
    """``magnitude / 10**decimals`` rounded to the display precision."""
    exact = Decimal(format_units(magnitude, decimals))
    with localcontext() as ctx:
        ctx.prec = max(28, len(str(abs(magnitude))) + DISPLAY_DECIMALS + 2)
        return exact.quantize(_DISPLAY_QUANTUM, rounding=ROUND_HALF_UP)


def get_max_safe_reward(decimals: int = 18) -> str:
    """Largest safe reward at *decimals*, with exactly 6 fractional digits."""
    return f"{_fixed(MAX_SAFE_INTEGER, decimals):f}"


def format_reward_for_display(magnitude: int, decimals: int = 18) -> str:
    """6-decimal rendering with trailing zeros (and a bare dot) trimmed."""
    text = f"{_fixed(magnitude, decimals):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def is_reward_exceeding_safe_limit(magnitude: int) -> bool:
    return magnitude > MAX_SAFE_INTEGER


def encode_reward(
    value: str,
    decimals: int = 18,
    *,
    signed: bool = False,
    token_symbol: str = "tokens",
) -> RewardAmount:
    """Encode a user-entered reward, capping it to ``MAX_SAFE_INTEGER``.

    ``signed=True`` selects the expatriation variant, which accepts
    negative values.  The unsigned (repatriation) variant raises
    ``ValueError`` for negative input.
    """
    raw = parse_units(value, decimals)
    if raw < 0 and not signed:
        raise ValueError(f"Unsigned reward cannot be negative: {value!r}")

    was_capped = is_reward_exceeding_safe_limit(raw)
    magnitude = MAX_SAFE_INTEGER if was_capped else raw
    max_safe_value = get_max_safe_reward(decimals)
    if was_capped:
        logger.warning(
            "Reward %s %s exceeds safe limit, capped to %s %s",
            format_units(raw, decimals), token_symbol, max_safe_value, token_symbol,
        )

    return RewardAmount(
        magnitude=magnitude,
        was_capped=was_capped,
        original_value=format_units(raw, decimals),
        max_safe_value=max_safe_value,
        display_value=format_reward_for_display(magnitude, decimals),
        signed=signed,
    )


def encode_expatriation_reward(value: str, decimals: int = 18, *, token_symbol: str = "tokens") -> RewardAmount:
    return encode_reward(value, decimals, signed=True, token_symbol=token_symbol)


def encode_repatriation_reward(value: str, decimals: int = 18, *, token_symbol: str = "tokens") -> RewardAmount:
    return encode_reward(value, decimals, signed=False, token_symbol=token_symbol)


def decode_reward(magnitude: int, decimals: int = 18) -> str:
    """Inverse of the encode step for non-capped values: exact decimal string."""
    return format_units(magnitude, decimals)
