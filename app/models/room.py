from app.extensions import db

class Room(db.Model):
    __tablename__ = 'rooms'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    description = db.Column(db.String(255), default='')
    capacity = db.Column(db.Integer, nullable=True) # display only, never enforced

    bookings = db.relationship('Booking', back_populates='room', lazy=True,
                               cascade='all, delete-orphan')
    permissions = db.relationship('RoomPermission', back_populates='room', lazy=True,
                                  cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'description': self.description or '',
            'capacity': self.capacity
        }
