# pulse/utils/logging.py

import logging
import os
from pathlib import Path

from pulse.config.settings import BASE_DIR

LOG_DIR = Path(os.getenv("PULSE_LOG_DIR", str(BASE_DIR / "pulse" / "logs")))
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "pulse.log"


def get_logger(name: str = "pulse") -> logging.Logger:
    """
    Return a logger that logs both to file and console.
    Avoids adding duplicate handlers on repeated imports.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger  # avoid duplicate handlers

    logger.setLevel(logging.INFO)

    # File handler
    fh = logging.FileHandler(LOG_FILE, encoding="utf-8")
    fh.setLevel(logging.INFO)

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)

    fmt = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    fh.setFormatter(fmt)
    ch.setFormatter(fmt)

    logger.addHandler(fh)
    logger.addHandler(ch)
    return logger
