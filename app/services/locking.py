"""Per-room write serialization and the transaction wrapper around it.

A booking mutation reads the room's bookings, checks for overlap and writes.
Two requests doing that at the same time for the same room must not both see
a free slot, so the read happens only after ``lock_room`` has taken a lock
that lasts until commit or rollback:

- PostgreSQL (and other engines with row locks): ``SELECT ... FOR UPDATE`` on
  the room row. Other rooms are not blocked.
- SQLite: ``BEGIN IMMEDIATE``, which takes the database write lock. SQLite
  has no row locks, so this serializes all writers.

``run_atomic`` runs a unit of work, commits it, and rolls everything back on
any failure so nothing is ever half applied.
"""

import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from app.extensions import db
from app.models import BOOKING_NO_OVERLAP_CONSTRAINT, Room
from app.utils.errors import BookingAppError, StorageError, TimeConflict

logger = logging.getLogger(__name__)

EXCLUSION_VIOLATION = '23P01'


def begin_write(session=None):
    """Make sure the current transaction holds SQLite's write lock.

    No-op on other dialects, where row locks are taken per statement.
    """
    session = session if session is not None else db.session
    if session.get_bind().dialect.name != 'sqlite':
        return
    connection = session.connection()
    raw = connection.connection.dbapi_connection
    if not raw.in_transaction:
        connection.exec_driver_sql('BEGIN IMMEDIATE')


def lock_room(room_id, session=None):
    """Lock ``room_id`` for the rest of the transaction and return it (or None)."""
    session = session if session is not None else db.session
    try:
        room_id = int(room_id)
    except (TypeError, ValueError):
        return None
    if session.get_bind().dialect.name == 'sqlite':
        begin_write(session)
        return session.query(Room).filter(Room.id == room_id).populate_existing().first()
    return session.query(Room).filter(Room.id == room_id).with_for_update().populate_existing().first()


def is_overlap_violation(error: IntegrityError) -> bool:
    orig = getattr(error, 'orig', None)
    if getattr(orig, 'pgcode', None) == EXCLUSION_VIOLATION:
        return True
    return BOOKING_NO_OVERLAP_CONSTRAINT in str(orig)


def run_atomic(operation, description='operation', retries=None):
    """Run ``operation()`` in a transaction and commit it.

    - ``BookingAppError`` raised by the operation rolls back and propagates.
    - An overlap rejected by the database becomes ``TimeConflict``, exactly
      like the application-level check would have reported it.
    - ``OperationalError`` (lost connection, lock timeout) rolls back and is
      retried ``retries`` times, then surfaces as ``StorageError``.
    - Any other database error rolls back and surfaces as ``StorageError``.
    Conflicts are never retried.
    """
    if retries is None:
        retries = current_app.config.get('STORAGE_RETRIES', 1)
    attempt = 0
    while True:
        attempt += 1
        try:
            result = operation()
            db.session.commit()
            return result
        except BookingAppError:
            db.session.rollback()
            raise
        except IntegrityError as e:
            db.session.rollback()
            if is_overlap_violation(e):
                logger.info("Storage rejected overlapping booking during %s", description)
                raise TimeConflict() from e
            logger.exception("Integrity error during %s", description)
            raise StorageError() from e
        except OperationalError as e:
            db.session.rollback()
            if attempt <= retries:
                logger.warning("Transient storage error during %s (attempt %d), retrying: %s",
                               description, attempt, e)
                continue
            logger.exception("Storage failure during %s after %d attempts", description, attempt)
            raise StorageError() from e
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Storage failure during %s", description)
            raise StorageError() from e
