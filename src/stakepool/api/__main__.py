# src/stakepool/api/__main__.py
from __future__ import annotations

import uvicorn

from stakepool.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so STAKEPOOL_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from stakepool.api.app import create_app
    from stakepool.api.structured_logging import configure_structured_logging
    from stakepool.runtime.pool_config import load_pool_config

    cfg = load_pool_config()
    configure_structured_logging(cfg.log_level)

    uvicorn.run(create_app(cfg=cfg), host=cfg.api_host, port=int(cfg.api_port), log_level="info")


if __name__ == "__main__":
    main()
