"""Entry point for running xoarena via ``python -m xoarena``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered xoarena server."""

    host = os.environ.get("XOARENA_HOST", "0.0.0.0")
    port = int(os.environ.get("XOARENA_PORT", "8000"))
    log_level = os.environ.get("XOARENA_LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("xoarena.server:app", host=host, port=port, reload=False, log_level=log_level.lower())


if __name__ == "__main__":
    main()
