"""The authenticated caller, as seen by the authorization resolver."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Principal:
    user_id: Optional[int]
    email: str
    role: str = 'user'

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(user_id=user.id, email=(user.email or '').strip().lower(), role=user.role or 'user')
