"""
Logging setup for the spin wheel engine
Console logging, an optional rotating log file, and the active round
(id and nonce) stamped on every line logged while a round is being handled
"""

import contextvars
import logging
import os
import sys
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler

_active_round = contextvars.ContextVar('active_round', default=None)

CONSOLE_FORMAT = '[%(asctime)s] %(levelname)-8s %(round_tag)s%(message)s'
FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(round_tag)s%(message)s'


@contextmanager
def round_context(round_id, nonce):
    """
    Tag log lines emitted inside the block with the round they belong to

    Usage:
        with round_context(round_id, nonce):
            logger.info("🎲 settling")   # -> "[round <id> #<nonce>] 🎲 settling"
    """
    token = _active_round.set((round_id, str(nonce)))
    try:
        yield
    finally:
        _active_round.reset(token)


def current_round():
    """(round_id, nonce) of the round being handled, or None"""
    return _active_round.get()


class RoundContextFilter(logging.Filter):
    """Adds %(round_tag)s to every record passing through a handler"""

    def filter(self, record):
        active = _active_round.get()
        record.round_tag = f"[round {active[0]} #{active[1]}] " if active else ""
        return True


def setup_logging(log_level=None, log_file=None, app_name='spin_wheel'):
    """
    Configure the package logger

    Args:
        log_level: Level name; LOG_LEVEL or INFO when omitted
        log_file: Path for a rotating log file; LOG_FILE when omitted,
            no file logging when neither is set
        app_name: Logger to configure; the package name covers every module

    Returns:
        logging.Logger: The configured logger
    """
    level_name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)
    log_file = log_file or os.getenv('LOG_FILE')

    logger = logging.getLogger(app_name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    round_filter = RoundContextFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    console.addFilter(round_filter)
    logger.addHandler(console)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            # 10MB per file, 5 backups
            file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
            file_handler.addFilter(round_filter)
            logger.addHandler(file_handler)
            logger.info(f"File logging enabled: {log_file}")
        except OSError as e:
            logger.error(f"Failed to setup file logging: {e}")

    # Round lines are formatted here; don't repeat them through the root logger
    logger.propagate = False
    return logger
