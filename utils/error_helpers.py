"""
Error handling helpers
Ledger error translation and failure logging that names the round involved
"""

from functools import wraps
import logging

from sqlalchemy.exc import SQLAlchemyError

from .logging_config import current_round

logger = logging.getLogger(__name__)


def _round_suffix():
    active = current_round()
    return f" (round {active[0]}, nonce {active[1]})" if active else ""


def db_error_handler(wrap_as):
    """
    Decorator factory for ledger operations

    SQLAlchemy failures are logged with traceback and the active round, then
    re-raised as `wrap_as` so callers only ever see the engine's own errors.
    Anything else passes through untouched.

    Usage:
        @db_error_handler(LedgerError)
        def append(self, record):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(f"❌ Database error in {func.__qualname__}{_round_suffix()}: {e}", exc_info=True)
                raise wrap_as(f"{func.__name__} failed: {e}") from e
        return wrapper
    return decorator


class log_exceptions:
    """
    Context manager that logs a failing step with the round it belongs to
    The exception is never suppressed

    Usage:
        with log_exceptions("revealing server seed"):
            server_seed = commitments.reveal_round(round_commitment)
    """
    def __init__(self, operation, **context):
        self.operation = operation
        self.context = context

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            details = ''.join(f", {k}={v}" for k, v in self.context.items())
            logger.error(f"❌ {self.operation} failed{_round_suffix()}{details}: {exc_val}", exc_info=True)
        return False
