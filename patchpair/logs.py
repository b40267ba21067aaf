"""File logging for the desktop app.

Modules log to children of the 'PatchPair' logger; only the entry point
attaches a handler, so importing the package has no side effects.
"""
import logging
import os

LOGGER_NAME = 'PatchPair'


def get_logger(name=None):
    return logging.getLogger(LOGGER_NAME if not name else f"{LOGGER_NAME}.{name}")


def setup_logging(log_dir=None, level=logging.INFO):
    """Attach a FileHandler writing to <log_dir>/patchpair.log (once)."""
    if log_dir is None:
        log_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'logs')
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'patchpair.log')

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    # Check if handler already exists to avoid duplicate logs
    if not logger.handlers:
        fh = logging.FileHandler(log_file)
        fh.setLevel(level)
        formatter = logging.Formatter('%(asctime)s - %(message)s')
        fh.setFormatter(formatter)
        logger.addHandler(fh)
    return logger
