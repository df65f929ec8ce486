"""Per-room delegated roles, keyed by ``(room_id, email)``.

The authorization resolver only depends on the small interface below, so it
can be exercised against the in-memory store in tests and run against the
database in the app.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from app.extensions import db
from app.models import ROOM_ROLES, RoomPermission


def normalise_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


@dataclass(frozen=True)
class PermissionEntry:
    room_id: int
    user_email: str
    role: str

    def to_dict(self):
        return {'userEmail': self.user_email, 'role': self.role}


class PermissionStore(ABC):
    """Interface of a room permission store."""

    @abstractmethod
    def role_for(self, room_id, email) -> Optional[str]:
        """Room role of ``email`` in ``room_id``, or None."""

    @abstractmethod
    def list_for_room(self, room_id) -> List[PermissionEntry]:
        """All entries of a room, ordered by email."""

    @abstractmethod
    def upsert(self, room_id, email, role) -> PermissionEntry:
        """Set the role, overwriting any previous one."""

    @abstractmethod
    def remove(self, room_id, email) -> bool:
        """Drop the entry; True if there was one."""

    def count_admins(self, room_id) -> int:
        return sum(1 for entry in self.list_for_room(room_id) if entry.role == 'admin')


def _check_role(role):
    if role not in ROOM_ROLES:
        raise ValueError(f"Unknown room role: {role!r}")


class InMemoryPermissionStore(PermissionStore):

    def __init__(self, entries=None):
        self._roles: Dict[Tuple[str, str], str] = {}
        for room_id, email, role in entries or ():
            self.upsert(room_id, email, role)

    def role_for(self, room_id, email):
        return self._roles.get((str(room_id), normalise_email(email)))

    def list_for_room(self, room_id):
        key = str(room_id)
        return [
            PermissionEntry(room_id=int(r), user_email=e, role=role)
            for (r, e), role in sorted(self._roles.items())
            if r == key
        ]

    def upsert(self, room_id, email, role):
        _check_role(role)
        email = normalise_email(email)
        self._roles[(str(room_id), email)] = role
        return PermissionEntry(room_id=int(room_id), user_email=email, role=role)

    def remove(self, room_id, email):
        return self._roles.pop((str(room_id), normalise_email(email)), None) is not None


class SQLPermissionStore(PermissionStore):
    """Database backed store. Writes join the caller's transaction; the caller commits."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _query(self, room_id, email=None):
        query = self.session.query(RoomPermission).filter(RoomPermission.room_id == int(room_id))
        if email is not None:
            query = query.filter(RoomPermission.user_email == normalise_email(email))
        return query

    def role_for(self, room_id, email):
        if room_id is None or not email:
            return None
        row = self._query(room_id, email).first()
        return row.role if row else None

    def list_for_room(self, room_id):
        rows = self._query(room_id).order_by(RoomPermission.user_email).all()
        return [PermissionEntry(room_id=r.room_id, user_email=r.user_email, role=r.role) for r in rows]

    def upsert(self, room_id, email, role):
        _check_role(role)
        email = normalise_email(email)
        row = self._query(room_id, email).first()
        if row is None:
            try:
                with self.session.begin_nested():
                    row = RoomPermission(room_id=int(room_id), user_email=email, role=role)
                    self.session.add(row)
            except IntegrityError:
                # Somebody inserted the same pair first: overwrite theirs
                row = self._query(room_id, email).one()
                row.role = role
        else:
            row.role = role
        self.session.flush()
        return PermissionEntry(room_id=row.room_id, user_email=row.user_email, role=row.role)

    def remove(self, room_id, email):
        deleted = self._query(room_id, email).delete(synchronize_session=False)
        return deleted > 0

    def count_admins(self, room_id):
        return self._query(room_id).filter(RoomPermission.role == 'admin').count()
