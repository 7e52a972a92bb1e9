import logging
import sys
from typing import Optional

from config import get_settings

_INITIALIZED = False


def init_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once: stdout handler, level from LOG_LEVEL."""
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_level_str = (level or get_settings().log_level).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root_logger.addHandler(handler)

    _INITIALIZED = True
