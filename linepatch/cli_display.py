import logging
import os
from datetime import datetime


def setup_logger(log_dir: str = ".linepatch/logs") -> logging.Logger:
    """Creates a file logger. All verbose output goes here."""
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"linepatch_{timestamp}.log")

    logger = logging.getLogger("linepatch")
    logger.setLevel(logging.DEBUG)

    # File handler captures everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    return logger


def print_banner(title: str, width: int = 60) -> None:
    print("\n" + "=" * width)
    print(f"  {title}")
    print("=" * width)


def print_rule(width: int = 60) -> None:
    print(f"\n{'─' * width}")
