from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from shopdesk import db
from shopdesk.errors import ConflictError
from shopdesk.logger import get_logger
from shopdesk.models import UNIQUE_MESSAGES

logger = get_logger(__name__)

GENERIC_CONFLICT = "The operation conflicts with existing records."


def conflict_message(exc):
    """
    Domain message for a storage-level IntegrityError.

    PostgreSQL names the violated constraint (``brands_name_key``), SQLite
    names the column (``UNIQUE constraint failed: brands.name``).
    """
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    text = str(exc.orig)

    for (table, column), message in UNIQUE_MESSAGES.items():
        if constraint == f"{table}_{column}_key" or f"{table}.{column}" in text:
            return message
    return GENERIC_CONFLICT


@contextmanager
def unit_of_work():
    """
    One all-or-nothing transaction on the request session.

    Commits when the block exits cleanly; any exception rolls back every
    write made inside the block and propagates. Storage-level unique or
    check violations come out as ConflictError instead of driver errors.
    """
    session = db.session
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning("integrity violation rolled back: %s", exc.orig)
        raise ConflictError(conflict_message(exc)) from exc
    except Exception:
        session.rollback()
        raise
