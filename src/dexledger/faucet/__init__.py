"""Faucet -- claim throttling and token delivery (paper or web3)."""

from dexledger.faucet.dispenser import TokenDispenser
from dexledger.faucet.paper_dispenser import PaperTokenDispenser
from dexledger.faucet.throttle import ClaimThrottle, clamp_claim_amount, empty_claims_document
from dexledger.faucet.web3_dispenser import Web3TokenDispenser

__all__ = [
    "ClaimThrottle",
    "PaperTokenDispenser",
    "TokenDispenser",
    "Web3TokenDispenser",
    "clamp_claim_amount",
    "empty_claims_document",
]
