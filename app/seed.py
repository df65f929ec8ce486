"""Default admin and sample rooms for a fresh database."""

import logging

from app.extensions import db
from app.models import Room
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

ROOMS_DATA = [
    {"name": "Salle Alpha", "description": "Small meeting room, TV", "capacity": 4},
    {"name": "Salle Beta", "description": "Projector and whiteboard", "capacity": 10},
    {"name": "Auditorium", "description": "Stage and sound system", "capacity": 50},
    {"name": "Focus Room 1", "description": "Single desk", "capacity": 1},
]


def seed_database(with_rooms=True):
    db.create_all()

    admin = UserService.ensure_default_admin()
    logger.info("Admin ready (%s)", admin.email)

    if with_rooms:
        for r_data in ROOMS_DATA:
            if not Room.query.filter_by(name=r_data['name']).first():
                room = Room(**r_data)
                db.session.add(room)
                logger.info("Room %s created.", room.name)
        db.session.commit()
    logger.info("Database seeded successfully.")


