from app.extensions import db
from app.models.types import UTCDateTime
from app.utils.timeutil import iso_z
from datetime import datetime
from sqlalchemy import DDL, event

class Booking(db.Model):
    __tablename__ = 'bookings'
    __table_args__ = (
        db.CheckConstraint('start_time < end_time', name='check_booking_time_range'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False, index=True)

    start_time = db.Column(UTCDateTime, nullable=False, index=True)
    end_time = db.Column(UTCDateTime, nullable=False, index=True)

    title = db.Column(db.String(128), default='')

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    room = db.relationship('Room', back_populates='bookings')
    user = db.relationship('User', back_populates='bookings')

    @property
    def user_email(self):
        return self.user.email if self.user else None

    def to_dict(self):
        return {
            'id': str(self.id),
            'roomId': str(self.room_id),
            'userId': str(self.user_id) if self.user_id is not None else None,
            'userEmail': self.user_email,
            'title': self.title or '',
            'startTime': iso_z(self.start_time),
            'endTime': iso_z(self.end_time),
            'roomName': self.room.name if self.room else None,
            'userName': self.user.name if self.user else None
        }

    def __repr__(self):
        return f"<Booking(id={self.id}, room={self.room_id}, {iso_z(self.start_time)}..{iso_z(self.end_time)})>"


# Storage-level no-overlap guarantee on PostgreSQL. Violations surface as
# IntegrityError (SQLSTATE 23P01) and are reported as TimeConflict.
BOOKING_NO_OVERLAP_CONSTRAINT = 'ex_booking_room_no_overlap'

event.listen(
    Booking.__table__,
    'before_create',
    DDL('CREATE EXTENSION IF NOT EXISTS btree_gist').execute_if(dialect='postgresql'),
)
event.listen(
    Booking.__table__,
    'after_create',
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {BOOKING_NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (room_id WITH =, tsrange(start_time, end_time, '[)') WITH &&)"
    ).execute_if(dialect='postgresql'),
)
