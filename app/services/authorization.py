"""Who may do what to which room or booking.

The resolver combines the caller's global role with the per-room delegated
roles held in a permission store. It only answers yes or no; routes and
services turn a ``False`` into ``Forbidden`` through ``ensure_can_act``.

Rules, first match wins:

1. Global admins may do anything.
2. The owner of a booking may edit or delete it. Ownership is matched by
   user id *or* by email, since a booking may belong to a provisioned user
   row whose id differs from the caller's while the email is the same.
3. A room-scoped ``admin`` may manage the room, its permissions and every
   booking in it.
4. Any authenticated caller may book.
5. Everything else is denied.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from app.utils.errors import Forbidden

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    MANAGE_ROOM = 'manage_room'
    BOOK = 'book'
    EDIT_BOOKING = 'edit_booking'
    DELETE_BOOKING = 'delete_booking'
    MANAGE_PERMISSIONS = 'manage_permissions'


BOOKING_ACTIONS = frozenset({Action.EDIT_BOOKING, Action.DELETE_BOOKING})
ROOM_ADMIN_ACTIONS = frozenset({
    Action.MANAGE_ROOM,
    Action.EDIT_BOOKING,
    Action.DELETE_BOOKING,
    Action.MANAGE_PERMISSIONS,
})


@dataclass(frozen=True)
class AuthContext:
    """What the action targets: a room, and for booking actions, its owner."""

    room_id: Optional[int]
    owner_id: Optional[int] = None
    owner_email: Optional[str] = None

    @classmethod
    def for_booking(cls, booking) -> "AuthContext":
        return cls(room_id=booking.room_id, owner_id=booking.user_id, owner_email=booking.user_email)

    @classmethod
    def for_room(cls, room_id) -> "AuthContext":
        return cls(room_id=room_id)


def _normalise_email(email):
    return (email or '').strip().lower()


def is_owner(principal, context: AuthContext) -> bool:
    """Two-field ownership check: same user id, or same email."""
    if principal.user_id is not None and context.owner_id is not None:
        if str(principal.user_id) == str(context.owner_id):
            return True
    owner_email = _normalise_email(context.owner_email)
    return bool(owner_email) and owner_email == _normalise_email(principal.email)


def can_act(principal, action, context: AuthContext, permissions) -> bool:
    if principal is None:
        return False
    action = Action(action)

    if principal.is_admin:
        return True

    if action in BOOKING_ACTIONS and is_owner(principal, context):
        return True

    if action in ROOM_ADMIN_ACTIONS and context.room_id is not None:
        # Always a live read, never a role cached at request start
        room_role = permissions.role_for(context.room_id, principal.email)
        if room_role == 'admin':
            return True

    if action is Action.BOOK:
        return True

    return False


def ensure_can_act(principal, action, context: AuthContext, permissions):
    """``can_act`` for service code: raise ``Forbidden`` instead of returning False."""
    if not can_act(principal, action, context, permissions):
        logger.info(
            "Denied %s on room=%s for %s",
            Action(action).value, context.room_id, getattr(principal, 'email', None),
        )
        raise Forbidden()
