import logging
from functools import wraps

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)

from app.core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


class DBException(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def db_exception(func):
    """Translate SQLAlchemy failures raised by a service method."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError:
            # Usually a duplicate entry
            raise DBException("Duplicate entry: already exists", 409)
        except (OperationalError, DisconnectionError) as e:
            logger.warning(f"Store unavailable in {func.__name__}: {e}")
            raise TransientStoreError()
        except DBAPIError as e:
            if e.connection_invalidated:
                raise TransientStoreError()
            raise DBException("Database error occurred", 500)
        except SQLAlchemyError:
            raise DBException("Database error occurred", 500)

    return wrapper
