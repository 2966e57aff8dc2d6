"""Input validation shared by the ledger and the faucet.

Addresses are checked with web3's syntactic validator: 20-byte hex with a
0x prefix, and mixed-case input must carry a valid EIP-55 checksum.
"""

import re
from typing import Any

from web3 import Web3

from dexledger.exceptions import ValidationError

_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_DIGITS_RE = re.compile(r"^[0-9]+$")

NATIVE_TOKEN = "native"


def is_valid_address(value: Any) -> bool:
    """True if ``value`` is a syntactically valid EVM address string."""
    return isinstance(value, str) and bool(value) and Web3.is_address(value)


def require_address(value: Any, message: str) -> str:
    """Return ``value`` unchanged if it is a valid address, else raise."""
    if not is_valid_address(value):
        raise ValidationError(message)
    return value


def parse_raw_amount(value: Any, message: str) -> int:
    """Parse a non-negative integer amount in minor units.

    Accepts ints and strings of decimal digits. Missing values read as 0.
    Floats, booleans, signs and decimal points are rejected.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int):
        if value < 0:
            raise ValidationError(message)
        return value
    if isinstance(value, str) and _DIGITS_RE.match(value.strip()):
        return int(value.strip())
    raise ValidationError(message)


def normalize_tx_hash(value: Any) -> str:
    """Return a validated transaction hash, or "" when none was given.

    Raises:
        ValidationError: If a hash is present but is not 0x + 64 hex chars.
    """
    if value is None or value == "":
        return ""
    if not isinstance(value, str) or not _TX_HASH_RE.match(value):
        raise ValidationError("Invalid txHash")
    return value


def clean_text(value: Any, max_length: int) -> str:
    """Trim free-form text and cap its length."""
    return str(value or "").strip()[:max_length]


def clean_token_address(value: Any) -> str:
    """Keep a token address only if valid (or the native-token marker)."""
    text = str(value or "").strip()
    if text == NATIVE_TOKEN:
        return NATIVE_TOKEN
    return text if is_valid_address(text) else ""
