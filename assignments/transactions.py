import logging
import random
import re
import time

from django.conf import settings
from django.db import OperationalError, transaction

from .exceptions import TransientConflict

logger = logging.getLogger(__name__)

# Lock contention and serialization failures as worded by SQLite
# ("database is locked", "database table is locked: <table>"),
# PostgreSQL and MySQL.
TRANSIENT_PATTERN = re.compile(
    r"deadlock"
    r"|could not serialize|serialization failure"
    r"|could not obtain lock|lock timeout|lock wait timeout|try restarting transaction"
    r"|write conflict"
    r"|database( table)? is locked",
    re.IGNORECASE,
)


def is_transient(error):
    return isinstance(error, OperationalError) and bool(TRANSIENT_PATTERN.search(str(error)))


def run_atomic(operation, *, conflict_error=TransientConflict, attempts=None, backoff_seconds=0.05):
    """
    Run ``operation`` inside one database transaction.

    Transient conflicts roll the whole unit back and run it again, up to
    ``attempts`` times; after that ``conflict_error`` is raised. Business
    errors raised by ``operation`` roll back and propagate untouched.
    """
    attempts = attempts or settings.ROTATION_TRANSACTION_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return operation()
        except OperationalError as e:
            if not is_transient(e):
                raise
            if attempt >= attempts:
                logger.warning(f"Giving up after {attempt} attempts: {e}")
                raise conflict_error() from e
            # Jittered: colliding callers must not retry in lockstep.
            delay = min(backoff_seconds * (2 ** (attempt - 1)), 1.0) * random.uniform(0.5, 1.5)
            logger.info(f"Transient conflict on attempt {attempt}, retrying in {delay:.2f}s: {e}")
            time.sleep(delay)
