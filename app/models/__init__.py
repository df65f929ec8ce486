from app.models.user import User, GLOBAL_ROLES
from app.models.room import Room
from app.models.room_permission import RoomPermission, ROOM_ROLES
from app.models.booking import Booking, BOOKING_NO_OVERLAP_CONSTRAINT
from app.models.principal import Principal

__all__ = [
    'User', 'Room', 'RoomPermission', 'Booking', 'Principal',
    'GLOBAL_ROLES', 'ROOM_ROLES', 'BOOKING_NO_OVERLAP_CONSTRAINT',
]
