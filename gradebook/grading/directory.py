from dataclasses import dataclass
from typing import List, Optional

from ..extensions import db
from ..models import AcademicSession, ClassEnrollment, SchoolClass, Subject, Term, User


@dataclass(frozen=True)
class Context:
    school_id: int
    session_id: Optional[int]
    term_id: Optional[int]


def class_exists(school_id, class_id) -> bool:
    return SchoolClass.query.filter_by(id=class_id, school_id=school_id).first() is not None


def get_class(school_id, class_id) -> Optional[SchoolClass]:
    return SchoolClass.query.filter_by(id=class_id, school_id=school_id).one_or_none()


def subject_belongs_to(subject_id, class_id, teacher_id, school_id) -> bool:
    return Subject.query.filter_by(
        id=subject_id, class_id=class_id, teacher_id=teacher_id, school_id=school_id
    ).first() is not None


def is_approved(subject_id) -> bool:
    subject = db.session.get(Subject, subject_id)
    return bool(subject and subject.is_approved)


def is_approved_teacher(teacher_id, school_id) -> bool:
    return User.query.filter_by(
        id=teacher_id, school_id=school_id, role="teacher", is_approved=True
    ).first() is not None


def is_enrolled(student_id, class_id) -> bool:
    return ClassEnrollment.query.filter_by(student_id=student_id, class_id=class_id).first() is not None


def enrolled_among(student_ids, class_id) -> set:
    if not student_ids:
        return set()
    rows = (db.session.query(ClassEnrollment.student_id)
            .filter(ClassEnrollment.class_id == class_id,
                    ClassEnrollment.student_id.in_(list(student_ids)))
            .all())
    return {r.student_id for r in rows}


def list_enrolled(class_id, session_id=None, term_id=None) -> List[int]:
    """Student ids enrolled in the class, ordered by enrollment."""
    q = ClassEnrollment.query.filter_by(class_id=class_id)
    if session_id is not None:
        q = q.filter_by(session_id=session_id)
    if term_id is not None:
        q = q.filter_by(term_id=term_id)
    ids = []
    for row in q.order_by(ClassEnrollment.id.asc()).all():
        if row.student_id not in ids:
            ids.append(row.student_id)
    return ids


def current_context(school_id) -> Context:
    session = AcademicSession.query.filter_by(school_id=school_id, is_active=True).first()
    term = None
    if session is not None:
        term = Term.query.filter_by(session_id=session.id, is_active=True).first()
    return Context(
        school_id=school_id,
        session_id=session.id if session else None,
        term_id=term.id if term else None,
    )
