import logging

from app.extensions import db
from app.models import Booking
from app.services.authorization import Action, AuthContext, ensure_can_act
from app.services.conflicts import find_conflicts, validate_time_range
from app.services.locking import lock_room, run_atomic
from app.services.permission_store import SQLPermissionStore, normalise_email
from app.services.user_service import UserService
from app.utils.errors import NotFound, TimeConflict
from app.utils.timeutil import to_utc

logger = logging.getLogger(__name__)


def _normalise_range(start_time, end_time):
    return (to_utc(start_time) if start_time is not None else None,
            to_utc(end_time) if end_time is not None else None)


class BookingService:
    """Create, edit and cancel bookings without ever admitting an overlap.

    Every mutation runs as one unit of work: lock the room, re-read what is
    needed, check permission and overlap, write, commit. Failures roll back
    the whole unit (see ``app.services.locking.run_atomic``).
    """

    def __init__(self, permissions=None):
        self.permissions = permissions if permissions is not None else SQLPermissionStore()

    @staticmethod
    def room_bookings(room_id, exclude_booking_id=None):
        """Snapshot of a room's bookings. Only meaningful under ``lock_room``."""
        query = Booking.query.filter(Booking.room_id == room_id)
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.all()

    @staticmethod
    def get_booking(booking_id):
        try:
            booking_id = int(booking_id)
        except (TypeError, ValueError):
            raise NotFound('Booking not found.')
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFound('Booking not found.')
        return booking

    @staticmethod
    def list_bookings(room_id=None):
        query = Booking.query
        if room_id is not None:
            query = query.filter(Booking.room_id == int(room_id))
        return query.order_by(Booking.start_time, Booking.id).all()

    def _ensure_free(self, room_id, start_time, end_time, exclude_booking_id=None):
        existing = self.room_bookings(room_id)
        conflicts = find_conflicts(existing, room_id, start_time, end_time, exclude_booking_id)
        if conflicts:
            logger.info("Room %s already booked for %s..%s (conflicts with %s)",
                        room_id, start_time, end_time, [b.id for b in conflicts])
            raise TimeConflict()

    def create_booking(self, principal, room_id, start_time, end_time, title=None, user_email=None):
        """Admit a new booking for ``principal``.

        ``user_email`` books on behalf of someone else and is only honoured
        for global admins; everybody else always books as themselves.
        """
        start_time, end_time = _normalise_range(start_time, end_time)
        validate_time_range(start_time, end_time)

        owner_email = principal.email
        if principal.is_admin and user_email:
            owner_email = normalise_email(user_email)

        def _create():
            room = lock_room(room_id)
            if room is None:
                raise NotFound('Room not found.')

            owner, _ = UserService.get_or_create_by_email(owner_email)
            self._ensure_free(room.id, start_time, end_time)
            ensure_can_act(principal, Action.BOOK, AuthContext(room_id=room.id, owner_id=owner.id,
                                                               owner_email=owner.email), self.permissions)

            booking = Booking(
                user_id=owner.id,
                room_id=room.id,
                start_time=start_time,
                end_time=end_time,
                title=title or ''
            )
            db.session.add(booking)
            db.session.flush()
            return booking

        booking = run_atomic(_create, 'create booking')
        logger.info("Booking %s admitted in room %s for %s", booking.id, booking.room_id, booking.user_email)
        return booking

    def update_booking(self, principal, booking_id, start_time, end_time, title=None):
        """Move and/or retitle a booking. ``title=None`` keeps the current title."""
        start_time, end_time = _normalise_range(start_time, end_time)
        validate_time_range(start_time, end_time)
        room_id = self.get_booking(booking_id).room_id

        def _update():
            lock_room(room_id)
            # Re-read under the lock: it may have been deleted meanwhile
            booking = db.session.query(Booking).filter(Booking.id == int(booking_id)).populate_existing().first()
            if booking is None:
                raise NotFound('Booking not found.')

            ensure_can_act(principal, Action.EDIT_BOOKING, AuthContext.for_booking(booking), self.permissions)
            self._ensure_free(booking.room_id, start_time, end_time, exclude_booking_id=booking.id)

            booking.start_time = start_time
            booking.end_time = end_time
            if title is not None:
                booking.title = title
            db.session.flush()
            return booking

        booking = run_atomic(_update, 'update booking')
        logger.info("Booking %s moved to %s..%s", booking.id, booking.start_time, booking.end_time)
        return booking

    def delete_booking(self, principal, booking_id):
        booking = self.get_booking(booking_id)
        ensure_can_act(principal, Action.DELETE_BOOKING, AuthContext.for_booking(booking), self.permissions)

        def _delete():
            deleted = Booking.query.filter(Booking.id == booking.id).delete(synchronize_session=False)
            if not deleted:
                raise NotFound('Booking not found.')
            return deleted

        run_atomic(_delete, 'delete booking')
        db.session.expunge(booking)
        logger.info("Booking %s cancelled by %s", booking_id, principal.email)
        return True
