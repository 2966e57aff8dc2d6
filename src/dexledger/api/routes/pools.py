"""Pool listing, creation, and deposit/withdrawal report endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import AliasChoices, BaseModel, Field

from dexledger.ledger.liquidity import LiquidityLedger

router = APIRouter()


class CreatePoolBody(BaseModel):
    owner: Any = None
    name: Any = ""
    pair: Any = ""
    base_symbol: Any = Field("", validation_alias=AliasChoices("baseSymbol", "token0Symbol"))
    quote_symbol: Any = Field("", validation_alias=AliasChoices("quoteSymbol", "token1Symbol"))
    quote_address: Any = Field("", validation_alias=AliasChoices("quoteAddress", "token1Address"))


class LiquidityReportBody(BaseModel):
    """Deposit or withdrawal report; amounts are minor-unit integers or digit strings."""

    wallet: Any = None
    base_raw: Any = Field(None, validation_alias=AliasChoices("baseRaw", "amount0Raw", "bdagRaw"))
    quote_raw: Any = Field(None, validation_alias=AliasChoices("quoteRaw", "amount1Raw", "usdcRaw"))
    lp_raw: Any = Field(None, validation_alias="lpRaw")
    tx_hash: Any = Field(None, validation_alias="txHash")


def _ledger(request: Request) -> LiquidityLedger:
    return request.app.state.ledger


@router.get("/pools")
async def list_pools(request: Request, wallet: str | None = None) -> dict[str, Any]:
    ledger = _ledger(request)
    views = await ledger.list_pools(wallet=wallet)
    return {
        "ok": True,
        "chainId": ledger.chain_id,
        "pools": [view.to_dict() for view in views],
    }


@router.post("/pools")
async def create_pool(request: Request, body: CreatePoolBody) -> dict[str, Any]:
    pool = await _ledger(request).create_pool(
        owner=body.owner,
        name=body.name,
        pair=body.pair,
        base_symbol=body.base_symbol,
        quote_symbol=body.quote_symbol,
        quote_address=body.quote_address,
    )
    return {"ok": True, "pool": pool.to_dict()}


@router.get("/pools/{pool_id}")
async def get_pool(request: Request, pool_id: str) -> dict[str, Any]:
    ledger = _ledger(request)
    detail = await ledger.get_pool(pool_id)
    return {
        "ok": True,
        "chainId": ledger.chain_id,
        "pool": detail.pool.to_dict(),
        "deposits": [ev.to_dict() for ev in detail.events],
    }


@router.post("/pools/{pool_id}/deposits")
async def record_deposit(
    request: Request, pool_id: str, body: LiquidityReportBody
) -> dict[str, Any]:
    event = await _ledger(request).add_deposit(
        pool_id=pool_id,
        wallet=body.wallet,
        base_raw=body.base_raw,
        quote_raw=body.quote_raw,
        lp_raw=body.lp_raw,
        tx_hash=body.tx_hash,
    )
    return {"ok": True, "deposit": event.to_dict()}


@router.post("/pools/{pool_id}/withdrawals")
async def record_withdrawal(
    request: Request, pool_id: str, body: LiquidityReportBody
) -> dict[str, Any]:
    event = await _ledger(request).add_withdrawal(
        pool_id=pool_id,
        wallet=body.wallet,
        base_raw=body.base_raw,
        quote_raw=body.quote_raw,
        lp_raw=body.lp_raw,
        tx_hash=body.tx_hash,
    )
    return {"ok": True, "withdrawal": event.to_dict()}
