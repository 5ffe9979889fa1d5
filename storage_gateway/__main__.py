"""
Run the storage gateway with uvicorn.

    python -m storage_gateway
"""

from __future__ import annotations

import logging

import uvicorn

from storage_gateway.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level.upper(),
    )
    uvicorn.run(
        "storage_gateway.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
