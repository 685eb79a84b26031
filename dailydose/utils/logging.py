import logging
import sys

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("apscheduler", "slack_sdk", "aiosqlite")


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging to stdout.

    Unknown level names fall back to INFO. Scheduler, Slack SDK and driver
    loggers never go below WARNING so each fired job does not log twice.
    """
    root_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
