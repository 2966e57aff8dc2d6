"""HTTP boundary -- JSON request/response API over the ledger and faucet."""

from dexledger.api.app import create_app

__all__ = ["create_app"]
