"""Registered classroom GPS reference points."""
from secure_attendance import db
from secure_attendance.models.base import BaseModel

class ClassroomLocation(BaseModel):
    """Named GPS point with an acceptance radius in meters."""

    __tablename__ = 'classroom_locations'

    name = db.Column(db.String(100), nullable=False)
    building = db.Column(db.String(100), nullable=True)
    room_number = db.Column(db.String(20), nullable=True)

    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    radius_meters = db.Column(db.Float, nullable=True, default=50)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'building': self.building,
            'room_number': self.room_number,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'radius_meters': self.radius_meters
        }
