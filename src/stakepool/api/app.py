from __future__ import annotations

from typing import Optional, Tuple

from fastapi import FastAPI

from stakepool.api.errors import install_error_handlers
from stakepool.api.routes_ops import router as ops_router
from stakepool.api.routes_pool import router as pool_router
from stakepool.api.structured_logging import RequestLogMiddleware
from stakepool.runtime.pool import Clock, StakingPool
from stakepool.runtime.pool_config import PoolConfig, load_pool_config
from stakepool.runtime.transfer import InMemoryCustody


def build_pool(cfg: PoolConfig, *, clock: Optional[Clock] = None) -> Tuple[StakingPool, InMemoryCustody]:
    """Build a pool backed by an in-memory custody book funded with the reward pool."""
    custody = InMemoryCustody(custody_account=cfg.custody_account)
    pool = StakingPool.create(
        start=cfg.start,
        end=cfg.end,
        total_rewards=cfg.total_rewards,
        transfer=custody,
        stake_asset=cfg.stake_asset,
        reward_asset=cfg.reward_asset,
        clock=clock,
        pool_id=cfg.pool_id,
    )
    custody.mint(cfg.reward_asset, cfg.custody_account, cfg.total_rewards)
    return pool, custody


def create_app(
    *,
    cfg: Optional[PoolConfig] = None,
    pool: Optional[StakingPool] = None,
    custody: Optional[InMemoryCustody] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """Create the FastAPI application.

    With no `pool`, one is built from `cfg` (or load_pool_config()).
    Tests pass their own pool/custody/clock.
    """
    cfg = cfg or load_pool_config()
    mode = str(cfg.mode).strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="Stake Pool API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Stake Pool API")

    if pool is None:
        pool, custody = build_pool(cfg, clock=clock)

    app.state.cfg = cfg
    app.state.pool = pool
    app.state.custody = custody

    app.add_middleware(RequestLogMiddleware)
    install_error_handlers(app)

    app.include_router(ops_router, prefix="/v1", tags=["ops"])
    app.include_router(pool_router, prefix="/v1", tags=["pool"])

    return app
