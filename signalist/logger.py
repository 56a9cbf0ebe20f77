import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from signalist.core.config import settings

LOG_DIR = Path(__file__).resolve().parent.parent / "logs"


def _level() -> int:
    return getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)


def get_logger(name: str):
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(_level())

    sh = logging.StreamHandler()
    sh.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(sh)

    try:
        LOG_DIR.mkdir(exist_ok=True, parents=True)
        fh = RotatingFileHandler(LOG_DIR / "signalist.log", maxBytes=2_000_000, backupCount=5)
        fh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(fh)
    except OSError as e:
        # read-only deployments still get console output
        logger.warning("File logging disabled: %s", e)

    logger.propagate = False
    return logger
