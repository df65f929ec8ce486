import logging

from app.models import ROOM_ROLES
from app.services.authorization import Action, AuthContext, ensure_can_act
from app.services.locking import lock_room, run_atomic
from app.services.permission_store import SQLPermissionStore, normalise_email
from app.services.user_service import UserService
from app.utils.errors import Forbidden, MissingFields, NotFound

logger = logging.getLogger(__name__)


class PermissionService:
    """Adds and removes room-scoped roles on behalf of global or room admins.

    A room admin who is not a global admin may not remove or demote the last
    admin entry of a room; only a global admin can leave a room admin-less.
    """

    def __init__(self, permissions=None):
        self.permissions = permissions if permissions is not None else SQLPermissionStore()

    def list_room_users(self, room_id):
        return self.permissions.list_for_room(room_id)

    def _ensure_not_last_admin(self, principal, room_id, email):
        if principal.is_admin:
            return
        if self.permissions.role_for(room_id, email) != 'admin':
            return
        if self.permissions.count_admins(room_id) <= 1:
            raise Forbidden('Cannot remove the last admin of a room.')

    def add_room_user(self, principal, room_id, user_email, role):
        email = normalise_email(user_email)
        missing = [f for f, v in (('userEmail', email), ('role', role)) if not v]
        if missing:
            raise MissingFields(missing)
        if role not in ROOM_ROLES:
            raise MissingFields(['role'], message=f"Role must be one of: {', '.join(ROOM_ROLES)}.")

        def _add():
            room = lock_room(room_id)
            if room is None:
                raise NotFound('Room not found.')
            ensure_can_act(principal, Action.MANAGE_PERMISSIONS, AuthContext.for_room(room.id), self.permissions)
            if role != 'admin':
                self._ensure_not_last_admin(principal, room.id, email)
            UserService.get_or_create_by_email(email)
            return self.permissions.upsert(room.id, email, role)

        entry = run_atomic(_add, 'add room user')
        logger.info("Room %s: %s is now %s (by %s)", entry.room_id, entry.user_email, entry.role, principal.email)
        return entry

    def remove_room_user(self, principal, room_id, user_email):
        email = normalise_email(user_email)
        if not email:
            raise MissingFields(['userEmail'])

        def _remove():
            room = lock_room(room_id)
            if room is None:
                # Nobody but a global admin holds rights on a room that does not exist
                if not principal.is_admin:
                    raise Forbidden()
                return False
            ensure_can_act(principal, Action.MANAGE_PERMISSIONS, AuthContext.for_room(room.id), self.permissions)
            self._ensure_not_last_admin(principal, room.id, email)
            return self.permissions.remove(room.id, email)

        removed = run_atomic(_remove, 'remove room user')
        if removed:
            logger.info("Room %s: %s removed (by %s)", room_id, email, principal.email)
        return removed
