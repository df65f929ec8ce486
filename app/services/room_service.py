import logging

from sqlalchemy.exc import IntegrityError

from app.extensions import db
from app.models import Room
from app.services.authorization import Action, AuthContext, ensure_can_act
from app.services.locking import begin_write, lock_room, run_atomic
from app.services.permission_store import SQLPermissionStore
from app.utils.errors import AlreadyExists, Forbidden, MissingFields, NotFound

logger = logging.getLogger(__name__)

ROOM_FIELDS = ('name', 'description', 'capacity')


def _clean_capacity(value):
    if value in (None, ''):
        return None
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise MissingFields(['capacity'], message='Capacity must be a positive integer.')
    if capacity <= 0:
        raise MissingFields(['capacity'], message='Capacity must be a positive integer.')
    return capacity


class RoomService:
    """Room CRUD. Creating and deleting are for global admins; editing follows ``manage_room``."""

    def __init__(self, permissions=None):
        self.permissions = permissions if permissions is not None else SQLPermissionStore()

    @staticmethod
    def list_rooms():
        return Room.query.order_by(Room.id).all()

    @staticmethod
    def get_room(room_id):
        try:
            room = db.session.get(Room, int(room_id))
        except (TypeError, ValueError):
            room = None
        if room is None:
            raise NotFound('Room not found.')
        return room

    def create_room(self, principal, name, description='', capacity=None):
        if not principal.is_admin:
            raise Forbidden('Admin privilege required')
        if not name:
            raise MissingFields(['name'])
        capacity = _clean_capacity(capacity)

        def _create():
            begin_write()
            if Room.query.filter_by(name=name).first():
                raise AlreadyExists('Room name already exists')
            room = Room(name=name, description=description or '', capacity=capacity)
            try:
                with db.session.begin_nested():
                    db.session.add(room)
            except IntegrityError:
                raise AlreadyExists('Room name already exists')
            return room

        room = run_atomic(_create, 'create room')
        logger.info("Room %s (%s) created by %s", room.id, room.name, principal.email)
        return room

    def update_room(self, principal, room_id, data):
        room = self.get_room(room_id)
        ensure_can_act(principal, Action.MANAGE_ROOM, AuthContext.for_room(room.id), self.permissions)

        def _update():
            locked = lock_room(room.id)
            if locked is None:
                raise NotFound('Room not found.')
            if 'name' in data:
                if not data['name']:
                    raise MissingFields(['name'])
                clash = Room.query.filter(Room.name == data['name'], Room.id != locked.id).first()
                if clash:
                    raise AlreadyExists('Room name already exists')
                locked.name = data['name']
            if 'description' in data:
                locked.description = data['description'] or ''
            if 'capacity' in data:
                locked.capacity = _clean_capacity(data['capacity'])
            return locked

        return run_atomic(_update, 'update room')

    def delete_room(self, principal, room_id):
        """Delete a room together with its bookings and permissions. Global admins only."""
        if not principal.is_admin:
            raise Forbidden('Admin privilege required')
        room = self.get_room(room_id)

        def _delete():
            locked = lock_room(room.id)
            if locked is None:
                raise NotFound('Room not found.')
            db.session.delete(locked)
            return True

        run_atomic(_delete, 'delete room')
        logger.info("Room %s deleted by %s", room_id, principal.email)
        return True
