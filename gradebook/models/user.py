from flask_login import UserMixin
from ..extensions import db

class User(UserMixin, db.Model):
    __tablename__ = "user"
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False)         # admin | teacher | student
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"))
    first_name = db.Column(db.String(64), nullable=False, default="")
    last_name = db.Column(db.String(64), nullable=False, default="")
    is_approved = db.Column(db.Boolean, nullable=False, default=False)

    school = db.relationship("School", back_populates="users")
    enrollments = db.relationship("ClassEnrollment", back_populates="student",
                                  cascade="all, delete-orphan")

    def identity(self):
        return {"user_id": self.id, "first_name": self.first_name, "last_name": self.last_name}
