import logging
from contextlib import contextmanager
from typing import List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class ValidationError(DomainError):
    """Malformed or semantically inconsistent input."""
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class ForbiddenError(DomainError):
    """The principal exists but lacks scope over the requested data."""
    status_code = 403


class ConflictError(DomainError):
    status_code = 409


class UnexpectedError(DomainError):
    status_code = 500

    def __init__(self, message: str = "Unexpected error"):
        super().__init__(message)


class CascadeError(UnexpectedError):
    """A cascade delete did not complete; reports which steps failed."""

    def __init__(self, entity: str, failed_steps: List[str], primary_deleted: bool = True):
        if primary_deleted:
            message = f"{entity} deleted, but cleanup failed for: {', '.join(failed_steps)}"
        else:
            message = f"{entity} could not be deleted"
        super().__init__(message)
        self.entity = entity
        self.failed_steps = failed_steps
        self.primary_deleted = primary_deleted

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "primary_deleted": self.primary_deleted,
            "failed_steps": self.failed_steps,
        }


UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == UNIQUE_VIOLATION:
        return True
    text = str(orig).lower()
    return "unique" in text or "duplicate" in text


@contextmanager
def store_errors(db, conflict_message: str = "Record already exists"):
    """Translate store exceptions raised inside the block into domain errors.

    Only uniqueness violations become conflicts; any other integrity failure
    (a foreign key, a NOT NULL) is unexpected.
    """
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise ConflictError(conflict_message)
        logger.exception("Integrity check failed")
        raise UnexpectedError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Store operation failed")
        raise UnexpectedError() from exc
