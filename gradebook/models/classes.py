from ..extensions import db

class SchoolClass(db.Model):
    __tablename__ = "school_class"
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"), nullable=False)
    name = db.Column(db.String(64), nullable=False)
    grade_level = db.Column(db.String(32))

    school = db.relationship("School", back_populates="classes")
    subjects = db.relationship("Subject", back_populates="school_class",
                               cascade="all, delete-orphan")
    enrollments = db.relationship("ClassEnrollment", back_populates="school_class",
                                  cascade="all, delete-orphan")

    def summary(self):
        return {"class_id": self.id, "name": self.name, "grade_level": self.grade_level}

class Subject(db.Model):
    __tablename__ = "subject"
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey("school_class.id"), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey("academic_session.id"))
    term_id = db.Column(db.Integer, db.ForeignKey("term.id"))
    name = db.Column(db.String(128), nullable=False)
    is_approved = db.Column(db.Boolean, nullable=False, default=False)

    school_class = db.relationship("SchoolClass", back_populates="subjects")
    teacher = db.relationship("User")
    term = db.relationship("Term")
