"""Overlap detection for room bookings.

Intervals are half-open ``[start, end)``: a booking that ends at 11:00 and one
that starts at 11:00 do not conflict. These helpers are pure; callers are
responsible for reading the booking snapshot under the room lock (see
``app.services.locking``) so the answer is still true when they write.
"""

from app.utils.errors import InvalidTimeRange


def validate_time_range(start_time, end_time):
    """Raise ``InvalidTimeRange`` unless ``start_time < end_time``."""
    if start_time is None or end_time is None:
        raise InvalidTimeRange("Start and end time are required.")
    if start_time >= end_time:
        raise InvalidTimeRange()


def overlaps(start_a, end_a, start_b, end_b):
    # (StartA < EndB) and (EndA > StartB)
    return start_a < end_b and end_a > start_b


def find_conflicts(existing_bookings, room_id, start_time, end_time, exclude_booking_id=None):
    """Return the bookings of ``room_id`` overlapping ``[start_time, end_time)``.

    ``existing_bookings`` may hold bookings of any room; anything else is
    ignored, as is the booking whose id is ``exclude_booking_id`` (used when
    editing a booking so it never collides with itself).
    """
    room_key = str(room_id)
    exclude_key = str(exclude_booking_id) if exclude_booking_id is not None else None
    conflicts = []
    for booking in existing_bookings:
        if str(booking.room_id) != room_key:
            continue
        if exclude_key is not None and str(booking.id) == exclude_key:
            continue
        if overlaps(start_time, end_time, booking.start_time, booking.end_time):
            conflicts.append(booking)
    return conflicts


def has_conflict(existing_bookings, room_id, start_time, end_time, exclude_booking_id=None):
    return bool(find_conflicts(existing_bookings, room_id, start_time, end_time, exclude_booking_id))
