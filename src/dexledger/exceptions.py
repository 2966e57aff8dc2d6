"""Custom exceptions for the DEX accounting service.

Every failure raised by the ledger, the claim throttle and the stores is a
LedgerError carrying an ErrorKind, so callers branch on the kind instead of
matching message text. All exceptions live here to avoid circular imports.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    COOLDOWN = "cooldown"
    DELIVERY = "delivery"
    STORAGE = "storage"
    CONFIG = "config"
    INTERNAL = "internal"


class LedgerError(Exception):
    """Base exception for all accounting service errors."""

    kind: ErrorKind = ErrorKind.VALIDATION
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Raised when an input is rejected before any mutation."""

    kind = ErrorKind.VALIDATION


class PoolNotFoundError(LedgerError):
    """Raised when a pool id does not exist (never created or closed)."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, pool_id: str) -> None:
        super().__init__("Pool not found")
        self.pool_id = pool_id


class DuplicateEventError(LedgerError):
    """Raised when a txHash is already recorded for a different event."""

    kind = ErrorKind.CONFLICT

    def __init__(self, tx_hash: str) -> None:
        super().__init__("txHash already recorded for a different event")
        self.tx_hash = tx_hash


class CooldownActiveError(LedgerError):
    """Raised when a wallet claims the faucet before its cooldown elapses."""

    kind = ErrorKind.COOLDOWN
    retryable = True

    def __init__(self, remaining_ms: int) -> None:
        remaining_min = -(-remaining_ms // 60_000)
        super().__init__(f"Cooldown active. Try again in ~{remaining_min} min")
        self.remaining_ms = remaining_ms
        self.remaining_min = remaining_min


class DeliveryError(LedgerError):
    """Raised when neither mint nor transfer could deliver faucet funds."""

    kind = ErrorKind.DELIVERY


class DeliveryPendingError(DeliveryError):
    """Raised when a transaction was broadcast but its receipt did not arrive.

    The transaction may still be mined, so it must not be followed by another
    delivery attempt for the same claim.
    """

    def __init__(self, method: str, tx_hash: str) -> None:
        super().__init__(f"{method} sent as {tx_hash} but not confirmed yet")
        self.method = method
        self.tx_hash = tx_hash


class StorageError(LedgerError):
    """Raised when a store document cannot be written."""

    kind = ErrorKind.STORAGE
    retryable = True


class ConfigurationError(LedgerError):
    """Raised when a required setting (RPC URL, signer key) is missing."""

    kind = ErrorKind.CONFIG
