from app.extensions import db

ROOM_ROLES = ('admin', 'user')

class RoomPermission(db.Model):
    __tablename__ = 'room_permissions'
    __table_args__ = (
        db.UniqueConstraint('room_id', 'user_email', name='uq_room_permission_room_email'),
        db.CheckConstraint("role IN ('admin', 'user')", name='check_room_permission_role'),
    )

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False, index=True)
    user_email = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='user')

    room = db.relationship('Room', back_populates='permissions')

    def to_dict(self):
        return {
            'userEmail': self.user_email,
            'role': self.role
        }
