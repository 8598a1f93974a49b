from ..extensions import db

class School(db.Model):
    __tablename__ = "school"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)

    users = db.relationship("User", back_populates="school")
    sessions = db.relationship("AcademicSession", back_populates="school",
                               cascade="all, delete-orphan")
    classes = db.relationship("SchoolClass", back_populates="school",
                              cascade="all, delete-orphan")

class AcademicSession(db.Model):
    __tablename__ = "academic_session"
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"), nullable=False)
    name = db.Column(db.String(32), nullable=False)          # e.g. "2024/2025"
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    __table_args__ = (
        db.UniqueConstraint("school_id", "name", name="uq_session_school_name"),
    )

    school = db.relationship("School", back_populates="sessions")
    terms = db.relationship("Term", back_populates="session",
                            order_by="Term.start_date", cascade="all, delete-orphan")

class Term(db.Model):
    __tablename__ = "term"
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey("academic_session.id"), nullable=False)
    name = db.Column(db.String(32), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False)

    session = db.relationship("AcademicSession", back_populates="terms")
