from ..extensions import db

class ClassEnrollment(db.Model):
    __tablename__ = "class_enrollment"
    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey("school_class.id"), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey("academic_session.id"), nullable=False)
    term_id = db.Column(db.Integer, db.ForeignKey("term.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    __table_args__ = (
        db.UniqueConstraint("class_id", "student_id", "session_id", "term_id",
                            name="uq_enrollment_class_student_term"),
    )

    school_class = db.relationship("SchoolClass", back_populates="enrollments")
    student = db.relationship("User", back_populates="enrollments")
