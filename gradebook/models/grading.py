from ..extensions import db

class GradingScheme(db.Model):
    __tablename__ = "grading_scheme"
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey("school_class.id"), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey("subject.id"), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    components = db.Column(db.JSON, nullable=False)          # [{"name": str, "weight": num}]
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(),
                           onupdate=db.func.current_timestamp())
    __table_args__ = (
        db.UniqueConstraint("school_id", "class_id", "subject_id", "teacher_id",
                            name="uq_scheme_owner"),
    )

    subject = db.relationship("Subject")
    teacher = db.relationship("User")
    scores = db.relationship("ScoreRecord", back_populates="scheme")

    @property
    def component_names(self):
        return [c["name"] for c in self.components or []]

    def to_dict(self):
        return {
            "scheme_id": self.id,
            "school_id": self.school_id,
            "class_id": self.class_id,
            "subject_id": self.subject_id,
            "teacher_id": self.teacher_id,
            "components": [dict(c) for c in self.components or []],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

class ScoreRecord(db.Model):
    __tablename__ = "score_record"
    id = db.Column(db.Integer, primary_key=True)
    scheme_id = db.Column(db.Integer, db.ForeignKey("grading_scheme.id"), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey("school_class.id"), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"), nullable=False)
    component_scores = db.Column(db.JSON, nullable=False)    # [{"component_name": str, "score": num}]
    total_score = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(),
                           onupdate=db.func.current_timestamp())
    __table_args__ = (
        db.UniqueConstraint("scheme_id", "student_id", "class_id", name="uq_score_scheme_student"),
    )

    scheme = db.relationship("GradingScheme", back_populates="scores")
    student = db.relationship("User", foreign_keys=[student_id])
    teacher = db.relationship("User", foreign_keys=[teacher_id])

    def to_dict(self):
        return {
            "score_id": self.id,
            "scheme_id": self.scheme_id,
            "student_id": self.student_id,
            "class_id": self.class_id,
            "teacher_id": self.teacher_id,
            "school_id": self.school_id,
            "scores": [dict(s) for s in self.component_scores or []],
            "total_score": self.total_score,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

class GradeBand(db.Model):
    __tablename__ = "grade_band"
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("school.id"), nullable=False)
    letter_grade = db.Column(db.String(8), nullable=False)
    min_score = db.Column(db.Float, nullable=False)
    max_score = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(),
                           onupdate=db.func.current_timestamp())
    __table_args__ = (
        db.UniqueConstraint("school_id", "letter_grade", name="uq_band_letter"),
        db.CheckConstraint("min_score >= 0 AND max_score >= min_score", name="ck_band_range"),
    )

    def contains(self, score):
        return self.min_score <= score <= self.max_score

    def to_dict(self):
        return {
            "band_id": self.id,
            "school_id": self.school_id,
            "letter_grade": self.letter_grade,
            "min_score": self.min_score,
            "max_score": self.max_score,
        }
