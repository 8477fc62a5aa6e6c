import datetime
import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from . import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def log_file_for(directory) -> Path:
    # One file per day, next to the pet's data
    return Path(directory) / f"moltmon-{datetime.datetime.now().strftime('%Y-%m-%d')}.log"


def setup_logging(level=None, log_file=None):
    """Send logs to the console through rich, or to ``log_file`` when given.

    The full-screen terminal front end logs to a file so log lines do not
    tear through the drawing.
    """
    level = (level or os.environ.get(config.LOG_LEVEL_ENV) or "INFO").upper()
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return logging.getLogger("moltmon")
