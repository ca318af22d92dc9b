"""
heartline.api.__main__ — Entry point: ``python -m heartline.api``
==================================================================

Bootstrap sequence:
1. Load ``.env`` (DATABASE_URL, JWT_SECRET, CORS origins).
2. Load ``config.yaml`` for the service name and port.
3. Serve :data:`heartline.api.main.app` with uvicorn.
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from heartline.config import load_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("heartline")


def main() -> None:
    """Bootstrap and run the Heartline API."""
    load_dotenv()
    cfg = load_config()
    logger.info("Starting %s on port %d", cfg.app_name, cfg.api_port)

    uvicorn.run("heartline.api.main:app", host="0.0.0.0", port=cfg.api_port, log_config=None)


if __name__ == "__main__":
    main()
