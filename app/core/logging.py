"""
SkillPulse Logging
Root logger setup shared by the API process and scripts
"""
import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger()

    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)

    root.setLevel(getattr(logging, level_name, logging.INFO))

    # aiohttp access noise is not useful at INFO
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
