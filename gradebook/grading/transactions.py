import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, TransactionError
from ..extensions import db

logger = logging.getLogger(__name__)


def commit(action, conflict_message=None):
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(conflict_message or f"Conflict while trying to {action}") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Commit failed while trying to %s", action, exc_info=True)
        raise TransactionError(f"Failed to {action}") from exc


@contextmanager
def atomic(action, conflict_message=None):
    """All-or-nothing unit of work: commit on success, roll back on any error."""
    try:
        yield db.session
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(conflict_message or f"Conflict while trying to {action}") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Database error while trying to %s", action, exc_info=True)
        raise TransactionError(f"Failed to {action}") from exc
    except BaseException:
        db.session.rollback()
        raise
    commit(action, conflict_message)
