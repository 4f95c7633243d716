# =============================================
# File: giftbot/utils/logging.py
# Purpose: Optional loguru file sink (GIFTBOT_LOG_FILE)
# =============================================
import os

from loguru import logger

_configured_path = None


def configure_logging() -> None:
    """Add a rotating file sink once, when GIFTBOT_LOG_FILE is set."""
    global _configured_path
    path = os.getenv("GIFTBOT_LOG_FILE")
    if not path or path == _configured_path:
        return
    logger.add(path, rotation="10 MB", level=os.getenv("LOG_LEVEL", "INFO").upper())
    _configured_path = path
