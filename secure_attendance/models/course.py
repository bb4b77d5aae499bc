"""Course reference used by attendance sessions."""
from secure_attendance import db
from secure_attendance.models.base import BaseModel

class Course(BaseModel):
    __tablename__ = 'courses'

    code = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)

    def to_dict(self):
        return {'id': self.id, 'code': self.code, 'name': self.name}
