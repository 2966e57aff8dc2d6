"""Faucet claim endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter()


class DripBody(BaseModel):
    wallet: Any = None
    amount: Any = None


@router.post("/faucet/drip")
async def drip(request: Request, body: DripBody) -> dict[str, Any]:
    tx_hash = await request.app.state.throttle.drip(wallet=body.wallet, amount=body.amount)
    return {"ok": True, "txHash": tx_hash}
