import logging, sys
from typing import Optional

NOISY_LOGGERS = ("httpx", "httpcore", "qdrant_client")


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
