from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from stakepool.api.errors import ApiError
from stakepool.api.schemas import ClaimRequest, MintRequest, SettleRequest, StakeRequest, UnstakeRequest
from stakepool.runtime.pool import StakingPool, normalize_participant

router = APIRouter()

Json = Dict[str, Any]


def _pool(request: Request) -> StakingPool:
    pool = getattr(request.app.state, "pool", None)
    if pool is None:
        raise ApiError.internal("not_ready", "pool not attached to app.state", {})
    return pool


@router.get("/pool")
def v1_pool(request: Request) -> Json:
    snap = _pool(request).snapshot()
    snap["ok"] = True
    return snap


@router.get("/pool/participants/{participant}")
def v1_participant(participant: str, request: Request) -> Json:
    pool = _pool(request)
    return {"ok": True, **pool.participant_view(participant)}


@router.post("/pool/stake")
def v1_stake(body: StakeRequest, request: Request) -> Json:
    receipt = _pool(request).stake(body.participant, body.amount)
    return {"ok": True, "receipt": receipt}


@router.post("/pool/unstake")
def v1_unstake(body: UnstakeRequest, request: Request) -> Json:
    receipt = _pool(request).unstake(body.participant, body.amount)
    return {"ok": True, "receipt": receipt}


@router.post("/pool/claim")
def v1_claim(body: ClaimRequest, request: Request) -> Json:
    receipt = _pool(request).claim(body.participant, body.amount)
    return {"ok": True, "receipt": receipt}


@router.post("/pool/settle")
def v1_settle(body: SettleRequest, request: Request) -> Json:
    settled = _pool(request).settle(body.participant)
    return {"ok": True, "participant": normalize_participant(body.participant), "settled_reward": settled}


@router.post("/custody/mint")
def v1_custody_mint(body: MintRequest, request: Request) -> Json:
    """Dev/testnet faucet for the in-memory custody book. Disabled in prod."""
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None or str(cfg.mode).strip().lower() == "prod":
        raise ApiError.not_found("not_found", "custody mint is not available in prod", {})
    custody = getattr(request.app.state, "custody", None)
    if custody is None or not hasattr(custody, "mint"):
        raise ApiError.internal("not_ready", "custody does not support mint", {})
    custody.mint(body.asset, body.account, body.amount)
    return {"ok": True, "asset": body.asset, "account": body.account, "balance": custody.balance_of(body.asset, body.account)}
